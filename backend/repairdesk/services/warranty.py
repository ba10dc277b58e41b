from __future__ import annotations
"""Warranty computation and serial-number lookups.

A warranty month counts as 30 days. A unit is under warranty while
today <= purchase_date + months * 30 days; remaining days never go negative.
"""
from dataclasses import dataclass, asdict
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from repairdesk.models.product import Product, SaleSerial
from repairdesk.utils.validation import parse_date

DAYS_PER_WARRANTY_MONTH = 30
SERIAL_SEARCH_LIMIT = 10


@dataclass(frozen=True)
class WarrantyInfo:
    serial_number: str
    product_name: str
    category: Optional[str]
    purchase_date: date
    warranty_months: int
    warranty_end_date: date
    warranty_remaining_days: int
    is_under_warranty: bool
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        out = asdict(self)
        out['purchase_date'] = self.purchase_date.isoformat()
        out['warranty_end_date'] = self.warranty_end_date.isoformat()
        return out

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'WarrantyInfo':
        return cls(
            serial_number=data['serial_number'],
            product_name=data.get('product_name') or '',
            category=data.get('category'),
            purchase_date=parse_date(data['purchase_date']),
            warranty_months=int(data.get('warranty_months') or 0),
            warranty_end_date=parse_date(data['warranty_end_date']),
            warranty_remaining_days=int(data.get('warranty_remaining_days') or 0),
            is_under_warranty=bool(data.get('is_under_warranty')),
            customer_id=data.get('customer_id'),
            customer_name=data.get('customer_name'),
            phone=data.get('phone'),
            email=data.get('email'),
        )


def warranty_window(purchase_date: date, warranty_months: int, today: Optional[date] = None):
    """Return (end_date, remaining_days, is_under_warranty)."""
    today = today or date.today()
    end = purchase_date + timedelta(days=max(0, warranty_months) * DAYS_PER_WARRANTY_MONTH)
    remaining = max(0, (end - today).days)
    return end, remaining, today <= end


def _info_for(unit: SaleSerial, today: Optional[date]) -> WarrantyInfo:
    product: Product = unit.product
    end, remaining, active = warranty_window(unit.sale_date, product.warranty_months, today)
    customer = unit.customer
    return WarrantyInfo(
        serial_number=unit.serial_number,
        product_name=product.name,
        category=product.category,
        purchase_date=unit.sale_date,
        warranty_months=product.warranty_months,
        warranty_end_date=end,
        warranty_remaining_days=remaining,
        is_under_warranty=active,
        customer_id=customer.id if customer else None,
        customer_name=customer.name if customer else None,
        phone=customer.phone if customer else None,
        email=customer.email if customer else None,
    )


def lookup_serial(session: Session, serial_number: str, today: Optional[date] = None) -> Optional[WarrantyInfo]:
    unit = session.execute(
        select(SaleSerial).where(SaleSerial.serial_number == serial_number)
    ).scalar_one_or_none()
    if unit is None:
        return None
    return _info_for(unit, today)


def search_serials(session: Session, fragment: str, today: Optional[date] = None, limit: int = SERIAL_SEARCH_LIMIT) -> List[Dict[str, Any]]:
    fragment = (fragment or '').strip()
    if not fragment:
        return []
    units = session.execute(
        select(SaleSerial)
        .where(SaleSerial.serial_number.ilike(f'%{fragment}%'))
        .order_by(SaleSerial.serial_number.asc())
        .limit(limit)
    ).scalars().all()
    out = []
    for unit in units:
        info = _info_for(unit, today)
        out.append({
            'serial_number': info.serial_number,
            'product_name': info.product_name,
            'warranty_months': info.warranty_months,
            'is_under_warranty': info.is_under_warranty,
            'warranty_remaining_days': info.warranty_remaining_days,
        })
    return out


__all__ = ['WarrantyInfo', 'warranty_window', 'lookup_serial', 'search_serials', 'DAYS_PER_WARRANTY_MONTH']
