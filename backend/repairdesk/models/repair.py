from __future__ import annotations
from decimal import Decimal
from typing import Optional, List
import datetime as dt
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, Boolean, Date, DateTime, Numeric, ForeignKey, func, text

from repairdesk.constants import repair_status
from .base import Base


class Repair(Base):
    __tablename__ = 'repairs'
    # Status constants
    STATUS_PENDING = repair_status.PENDING
    STATUS_COMPLETED = repair_status.COMPLETED
    STATUS_CANNOT_REPAIR = repair_status.CANNOT_REPAIR
    STATUS_PICKED_UP = repair_status.PICKED_UP
    ALL_STATUSES = tuple(repair_status.all_statuses())
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey('customers.id'), nullable=False, index=True)
    device_type: Mapped[str] = mapped_column(String(80), nullable=False)
    device_model: Mapped[str] = mapped_column(String(120), nullable=False)
    serial_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    issue_description: Mapped[str] = mapped_column(Text, nullable=False)
    technician_id: Mapped[int] = mapped_column(ForeignKey('users.id'), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=STATUS_PENDING, index=True)
    date_received: Mapped[dt.date] = mapped_column(Date, nullable=False, server_default=func.current_date())
    deadline: Mapped[dt.date] = mapped_column(Date, nullable=False)
    date_completed: Mapped[Optional[dt.date]] = mapped_column(Date, nullable=True)
    estimated_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    advance_payment: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal('0.00'))
    extra_expenses: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal('0.00'))
    device_password: Mapped[str] = mapped_column(String(120), nullable=False, default='')
    additional_notes: Mapped[str] = mapped_column(String(500), nullable=False, default='')
    is_under_warranty: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[int] = mapped_column(ForeignKey('users.id'), nullable=False)
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))

    customer = relationship('Customer')
    technician = relationship('User', foreign_keys=[technician_id])
    products: Mapped[List['RepairProduct']] = relationship(
        'RepairProduct', back_populates='repair', cascade='all, delete-orphan', order_by='RepairProduct.id'
    )

    @property
    def due_amount(self) -> Decimal:
        # Derived; never stored
        return (self.estimated_cost or Decimal('0')) + (self.extra_expenses or Decimal('0')) - (self.advance_payment or Decimal('0'))


class RepairProduct(Base):
    """Accessory or part handed in with the device (charger, bag, ...)."""
    __tablename__ = 'repair_products'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    repair_id: Mapped[int] = mapped_column(ForeignKey('repairs.id', ondelete='CASCADE'), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    condition_notes: Mapped[str] = mapped_column(String(255), nullable=False, default='')

    repair = relationship('Repair', back_populates='products')

# Status flow: Pending -> Completed -> Cannot Repair -> Picked Up (forward only; skipping allowed)
