from __future__ import annotations
"""Reusable validation helpers for repair submissions and customer records.

Every validator is pure and returns an error message, or '' when the value is
acceptable. `validate_all` runs all of them without short-circuiting and
returns only the failing fields, so an empty dict means "submittable".
The same functions back the REST routes (400 with a field map) and the
client-side assembler (no request issued while anything fails).
"""
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Mapping, Optional

from flask import abort

NOT_AVAILABLE_EMAIL = 'Not Available'
NOTES_MAX_LENGTH = 500

LOCAL_PHONE_RE = re.compile(r'^07\d{8}$')
INTL_PHONE_RE = re.compile(r'^\+947\d{8}$')
EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
WHITESPACE_RE = re.compile(r'\s+')

REQUIRED_FIELDS = {
    'customer': 'Customer name is required',
    'device_type': 'Device type is required',
    'device_model': 'Device model is required',
    'issue': 'Issue description is required',
}


def validate_status(new_status: str, allowed: Iterable[str], field_name: str = 'status') -> str:
    """Validate that new_status is inside allowed.

    Returns the status (to enable inline usage) or aborts with 400.
    """
    if new_status not in allowed:
        abort(400, description=f"{field_name} invalid")
    return new_status


def _blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ''
    return False


def normalize_phone(phone: Optional[str]) -> str:
    return WHITESPACE_RE.sub('', str(phone or ''))


def validate_required(value: Any, message: str) -> str:
    return message if _blank(value) else ''


def validate_phone(phone: Optional[str]) -> str:
    if _blank(phone):
        return 'Phone number is required'
    clean = normalize_phone(phone)
    if LOCAL_PHONE_RE.match(clean) or INTL_PHONE_RE.match(clean):
        return ''
    return 'Enter a valid mobile number (07XXXXXXXX or +947XXXXXXXX)'


def validate_email(email: Optional[str]) -> str:
    if _blank(email):
        return 'Email is required'
    email = str(email).strip()
    if email == NOT_AVAILABLE_EMAIL:
        return ''
    if EMAIL_RE.match(email):
        return ''
    return 'Enter a valid email address'


def parse_amount(value: Any) -> Decimal:
    """Parse a money amount, tolerating thousands separators ("1,500.00").

    Raises ValueError for blanks, garbage, non-finite and negative values.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError('amount required')
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    else:
        raw = str(value).replace(',', '').strip()
        if not raw:
            raise ValueError('amount required')
        try:
            amount = Decimal(raw)
        except InvalidOperation:
            raise ValueError(f'invalid amount {value!r}')
    if not amount.is_finite():
        raise ValueError(f'invalid amount {value!r}')
    if amount < 0:
        raise ValueError('amount must not be negative')
    try:
        return amount.quantize(Decimal('0.01'))
    except InvalidOperation:
        raise ValueError(f'amount out of range {value!r}')


def validate_amount(value: Any, label: str, required: bool = True, positive: bool = False) -> str:
    if _blank(value):
        return f'{label} is required' if required else ''
    try:
        amount = parse_amount(value)
    except ValueError:
        return f'{label} must be a non-negative amount'
    if positive and amount <= 0:
        return f'{label} must be greater than zero'
    return ''


def validate_advance(advance: Any, estimated: Any) -> str:
    """advance_payment may not exceed estimated_cost once both parse."""
    if _blank(advance):
        return ''
    try:
        advance_amount = parse_amount(advance)
        estimated_amount = parse_amount(estimated)
    except ValueError:
        return ''
    if advance_amount > estimated_amount:
        return 'Advance payment cannot exceed the estimated cost'
    return ''


def validate_notes(notes: Optional[str]) -> str:
    if notes is None:
        return ''
    if not isinstance(notes, str):
        return 'Notes must be text'
    if len(notes) > NOTES_MAX_LENGTH:
        return f'Notes must be at most {NOTES_MAX_LENGTH} characters'
    return ''


def parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f'invalid date {value!r}')


def validate_deadline(deadline: Any, created: Optional[date] = None) -> str:
    if _blank(deadline):
        return 'Deadline is required'
    try:
        due = parse_date(deadline)
    except ValueError:
        return 'Deadline must be a date (YYYY-MM-DD)'
    if due < (created or date.today()):
        return 'Deadline cannot be before the date received'
    return ''


def validate_technician(technician: Any) -> str:
    if technician is None:
        return 'Technician is required'
    if isinstance(technician, str) and not technician.strip():
        return 'Technician is required'
    return ''


def validate_all(record: Mapping[str, Any], created: Optional[date] = None) -> Dict[str, str]:
    """Validate a full repair submission; returns {field: message} for failures only."""
    created = created or _created_date(record)
    checks = {
        'phone': validate_phone(record.get('phone')),
        'email': validate_email(record.get('email')),
        'technician': validate_technician(record.get('technician')),
        'deadline': validate_deadline(record.get('deadline'), created),
        'estimated_cost': validate_amount(record.get('estimated_cost'), 'Estimated cost', positive=True),
        'advance_payment': validate_amount(record.get('advance_payment'), 'Advance payment', required=False)
            or validate_advance(record.get('advance_payment'), record.get('estimated_cost')),
        'extra_expenses': validate_amount(record.get('extra_expenses'), 'Extra expenses', required=False),
        'additional_notes': validate_notes(record.get('additional_notes')),
    }
    for field, message in REQUIRED_FIELDS.items():
        checks[field] = validate_required(record.get(field), message)
    return {field: msg for field, msg in checks.items() if msg}


def _created_date(record: Mapping[str, Any]) -> Optional[date]:
    received = record.get('date_received')
    if _blank(received):
        return None
    try:
        return parse_date(received)
    except ValueError:
        return None


def validate_customer(data: Mapping[str, Any]) -> Dict[str, str]:
    """Customer records: name and phone required, email optional but well-formed."""
    checks = {
        'name': validate_required(data.get('name'), 'Customer name is required'),
        'phone': validate_phone(data.get('phone')),
        'email': '' if _blank(data.get('email')) else validate_email(data.get('email')),
    }
    return {field: msg for field, msg in checks.items() if msg}


def validate_count(value: Any, label: str) -> str:
    """Whole non-negative number (warranty months, stock quantity)."""
    if _blank(value):
        return f'{label} is required'
    if isinstance(value, bool):
        return f'{label} must be a whole number'
    try:
        number = int(str(value).strip())
    except ValueError:
        return f'{label} must be a whole number'
    if number < 0:
        return f'{label} must not be negative'
    return ''


def validate_product(data: Mapping[str, Any]) -> Dict[str, str]:
    checks = {
        'name': validate_required(data.get('name'), 'Product name is required'),
        'category': validate_required(data.get('category'), 'Category is required'),
        'warranty_months': validate_count(data.get('warranty_months'), 'Warranty months'),
        'quantity': validate_count(data.get('quantity'), 'Quantity'),
        'retail_price': validate_amount(data.get('retail_price'), 'Retail price'),
    }
    return {field: msg for field, msg in checks.items() if msg}


def due_amount(estimated_cost: Any, advance_payment: Any = 0, extra_expenses: Any = 0) -> Decimal:
    """estimated + extra - advance; blanks count as zero for the optional terms."""
    estimated = parse_amount(estimated_cost)
    advance = parse_amount(advance_payment) if not _blank(advance_payment) else Decimal('0.00')
    extra = parse_amount(extra_expenses) if not _blank(extra_expenses) else Decimal('0.00')
    return estimated + extra - advance


__all__ = [
    'NOT_AVAILABLE_EMAIL', 'NOTES_MAX_LENGTH', 'validate_status', 'normalize_phone',
    'validate_required', 'validate_phone', 'validate_email', 'parse_amount', 'validate_amount',
    'validate_advance', 'validate_notes', 'parse_date', 'validate_deadline', 'validate_technician',
    'validate_all', 'validate_customer', 'validate_count', 'validate_product', 'due_amount',
]
