from __future__ import annotations
from datetime import date
from typing import Any, Mapping, Optional
from flask import current_app
from sqlalchemy import select
from sqlalchemy.orm import Session

from repairdesk.errors import ValidationError
from repairdesk.models.customer import Customer
from repairdesk.models.product import Product, SaleSerial
from repairdesk.utils.validation import parse_amount, parse_date, validate_product


def _apply(product: Product, data: Mapping[str, Any]):
    errors = validate_product(data)
    if errors:
        raise ValidationError(errors)
    product.name = str(data['name']).strip()
    product.category = str(data['category']).strip()
    product.warranty_months = int(str(data['warranty_months']).strip())
    product.quantity = int(str(data['quantity']).strip())
    product.retail_price = parse_amount(data['retail_price'])


def create_product(session: Session, data: Mapping[str, Any]) -> Product:
    merged = {'warranty_months': 0, 'quantity': 0, 'retail_price': '0', **data}
    product = Product()
    _apply(product, merged)
    session.add(product)
    session.flush()
    return product


def update_product(session: Session, product: Product, data: Mapping[str, Any]) -> Product:
    merged = dict(product_json(product))
    merged.update({k: v for k, v in data.items() if k in merged and k != 'id'})
    _apply(product, merged)
    return product


def record_sale(session: Session, product: Product, data: Mapping[str, Any]) -> SaleSerial:
    """Record one sold unit by serial number; the unit leaves stock and becomes warranty-searchable."""
    errors = {}
    serial = str(data.get('serial_number') or '').strip()
    if not serial:
        errors['serial_number'] = 'Serial number is required'
    elif session.execute(select(SaleSerial).where(SaleSerial.serial_number == serial)).scalar_one_or_none():
        errors['serial_number'] = 'This serial number is already recorded'
    customer: Optional[Customer] = None
    customer_id = data.get('customer_id')
    if customer_id is not None:
        customer = session.execute(select(Customer).where(Customer.id == customer_id)).scalar_one_or_none()
        if customer is None:
            errors['customer_id'] = 'Customer not found'
    sale_date = date.today()
    if data.get('sale_date'):
        try:
            sale_date = parse_date(data['sale_date'])
        except ValueError:
            errors['sale_date'] = 'Sale date must be a date (YYYY-MM-DD)'
        else:
            if sale_date > date.today():
                errors['sale_date'] = 'Sale date cannot be in the future'
    if product.quantity < 1:
        errors['quantity'] = f'{product.name} is out of stock'
    if errors:
        raise ValidationError(errors)
    unit = SaleSerial(serial_number=serial, product=product, customer=customer, sale_date=sale_date)
    product.quantity -= 1
    session.add(unit)
    session.flush()
    current_app.logger.info('sold %s serial %s (stock now %s)', product.name, serial, product.quantity)
    return unit


def product_json(p: Product):
    return {
        'id': p.id,
        'name': p.name,
        'category': p.category,
        'warranty_months': p.warranty_months,
        'quantity': p.quantity,
        'retail_price': f'{p.retail_price:.2f}' if p.retail_price is not None else '0.00',
    }


def sale_json(u: SaleSerial):
    return {
        'id': u.id,
        'serial_number': u.serial_number,
        'product_id': u.product_id,
        'customer_id': u.customer_id,
        'sale_date': u.sale_date.isoformat(),
    }
