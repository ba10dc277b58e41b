from __future__ import annotations
from datetime import date
from typing import Any, Mapping, Optional, Tuple
from flask import current_app
from sqlalchemy import select
from sqlalchemy.orm import Session

from repairdesk.errors import ValidationError
from repairdesk.models.customer import Customer
from repairdesk.utils.validation import NOT_AVAILABLE_EMAIL, normalize_phone, validate_customer


def _clean_email(email: Optional[str]) -> Optional[str]:
    if email is None:
        return None
    email = str(email).strip()
    if not email or email == NOT_AVAILABLE_EMAIL:
        return None
    return email


def find_by_phone(session: Session, phone: str) -> Optional[Customer]:
    return session.execute(
        select(Customer).where(Customer.phone == normalize_phone(phone))
    ).scalar_one_or_none()


def find_by_email(session: Session, email: Optional[str]) -> Optional[Customer]:
    email = _clean_email(email)
    if not email:
        return None
    return session.execute(select(Customer).where(Customer.email == email)).scalar_one_or_none()


def _check_unique(session: Session, phone: str, email: Optional[str], exclude_id: Optional[int] = None):
    errors = {}
    existing = find_by_phone(session, phone)
    if existing and existing.id != exclude_id:
        errors['phone'] = 'A customer with this phone number already exists'
    existing = find_by_email(session, email)
    if existing and existing.id != exclude_id:
        errors['email'] = 'A customer with this email already exists'
    if errors:
        raise ValidationError(errors)


def create_customer(session: Session, data: Mapping[str, Any]) -> Customer:
    errors = validate_customer(data)
    if errors:
        raise ValidationError(errors)
    phone = normalize_phone(data['phone'])
    email = _clean_email(data.get('email'))
    _check_unique(session, phone, email)
    customer = Customer(name=data['name'].strip(), phone=phone, email=email, date_created=date.today())
    session.add(customer)
    session.flush()
    return customer


def update_customer(session: Session, customer: Customer, data: Mapping[str, Any]) -> Customer:
    merged = {
        'name': data.get('name', customer.name),
        'phone': data.get('phone', customer.phone),
        'email': data.get('email', customer.email),
    }
    errors = validate_customer(merged)
    if errors:
        raise ValidationError(errors)
    phone = normalize_phone(merged['phone'])
    email = _clean_email(merged['email'])
    _check_unique(session, phone, email, exclude_id=customer.id)
    customer.name = merged['name'].strip()
    customer.phone = phone
    customer.email = email
    return customer


def find_or_create_customer(session: Session, name: str, phone: str, email: Optional[str]) -> Tuple[Customer, bool]:
    """Reuse the customer owning `phone`, else create one.

    Not transactional across requests: two concurrent submissions for the same
    new phone can both miss the lookup; the unique index on customers.phone
    turns the loser into an IntegrityError rather than a duplicate row.
    """
    existing = find_by_phone(session, phone)
    if existing:
        return existing, False
    customer = create_customer(session, {'name': name, 'phone': phone, 'email': email})
    current_app.logger.info('created customer %s for phone %s', customer.id, customer.phone)
    return customer, True


def customer_json(c: Customer):
    return {
        'id': c.id,
        'name': c.name,
        'phone': c.phone,
        'email': c.email or NOT_AVAILABLE_EMAIL,
        'date_created': c.date_created.isoformat() if c.date_created else None,
    }
