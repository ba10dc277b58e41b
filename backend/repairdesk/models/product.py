from __future__ import annotations
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Date, ForeignKey, Numeric
from decimal import Decimal
from typing import Optional
import datetime as dt

from .base import Base


class Product(Base):
    __tablename__ = 'products'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(64), nullable=False, default='General')
    warranty_months: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # units in stock; recording a sold serial takes one out
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    retail_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal('0.00'))


class SaleSerial(Base):
    """One sold unit, identified by its serial number; the anchor for warranty lookups."""
    __tablename__ = 'sale_serials'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    serial_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey('products.id'), nullable=False)
    customer_id: Mapped[Optional[int]] = mapped_column(ForeignKey('customers.id'), nullable=True)
    sale_date: Mapped[dt.date] = mapped_column(Date, nullable=False)

    product = relationship('Product')
    customer = relationship('Customer')
