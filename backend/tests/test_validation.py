from datetime import date, timedelta
from decimal import Decimal
import pytest
from repairdesk.utils.validation import (
    validate_phone, validate_email, parse_amount, validate_amount, validate_advance,
    validate_notes, validate_deadline, validate_all, validate_customer, due_amount, normalize_phone,
)

TODAY = date.today()


def _record(**overrides):
    rec = {
        'customer': 'Saman',
        'phone': '0712345678',
        'email': 'saman@example.com',
        'device_type': 'Laptop',
        'device_model': 'ThinkPad',
        'issue': 'Fan noise',
        'technician': 7,
        'deadline': (TODAY + timedelta(days=3)).isoformat(),
        'estimated_cost': '2,500.00',
        'advance_payment': '1,000',
        'extra_expenses': '',
        'additional_notes': '',
    }
    rec.update(overrides)
    return rec


@pytest.mark.parametrize('phone', ['0712345678', '+94712345678', '071 234 5678', ' +94 71 234 5678 '])
def test_phone_accepts_local_and_international(phone):
    assert validate_phone(phone) == ''


@pytest.mark.parametrize('phone', ['12345', '', None, '0812345678', '+9471234567', '07123456789'])
def test_phone_rejects(phone):
    assert validate_phone(phone)


def test_normalize_phone_strips_whitespace():
    assert normalize_phone(' 071 234\t5678 ') == '0712345678'


@pytest.mark.parametrize('email', ['a@b.com', 'Not Available', ' x.y@shop.lk '])
def test_email_accepts(email):
    assert validate_email(email) == ''


@pytest.mark.parametrize('email', ['a@b', '', 'not available', 'a b@c.com'])
def test_email_rejects(email):
    assert validate_email(email)


def test_parse_amount_strips_thousands_separators():
    assert parse_amount('1,500.00') == Decimal('1500.00')
    assert parse_amount(250) == Decimal('250.00')
    with pytest.raises(ValueError):
        parse_amount('-1')
    with pytest.raises(ValueError):
        parse_amount('abc')
    with pytest.raises(ValueError):
        parse_amount('NaN')


def test_estimated_cost_must_be_positive():
    assert validate_amount('0', 'Estimated cost', positive=True)
    assert validate_amount('', 'Estimated cost', positive=True) == 'Estimated cost is required'
    assert validate_amount('0.01', 'Estimated cost', positive=True) == ''


def test_optional_amount_may_be_blank():
    assert validate_amount('', 'Extra expenses', required=False) == ''
    assert validate_amount('x', 'Extra expenses', required=False)


def test_advance_cannot_exceed_estimate():
    assert validate_advance('2,000.00', '1,500.00') == 'Advance payment cannot exceed the estimated cost'
    assert validate_advance('1,500.00', '1,500.00') == ''


def test_notes_capped_at_500():
    assert validate_notes('x' * 500) == ''
    assert validate_notes('x' * 501)


def test_deadline_not_before_creation():
    assert validate_deadline(TODAY.isoformat(), TODAY) == ''
    assert validate_deadline((TODAY - timedelta(days=1)).isoformat(), TODAY)
    assert validate_deadline('next week', TODAY)
    assert validate_deadline('', TODAY) == 'Deadline is required'


def test_validate_all_clean_record_is_submittable():
    assert validate_all(_record(), created=TODAY) == {}


def test_validate_all_reports_every_failing_field():
    errors = validate_all(_record(customer='', phone='123', email='a@b', technician=None,
                                  deadline='', issue='  '), created=TODAY)
    assert set(errors) == {'customer', 'phone', 'email', 'technician', 'deadline', 'issue'}


def test_advance_error_independent_of_other_fields():
    # every other field broken too; the advance check still fires
    rec = {'estimated_cost': '1,500.00', 'advance_payment': '2,000.00'}
    errors = validate_all(rec, created=TODAY)
    assert errors['advance_payment'] == 'Advance payment cannot exceed the estimated cost'
    assert 'estimated_cost' not in errors


def test_validate_all_uses_date_received_when_present():
    received = TODAY - timedelta(days=10)
    rec = _record(date_received=received.isoformat(), deadline=(received + timedelta(days=1)).isoformat())
    assert validate_all(rec) == {}


def test_validate_customer():
    assert validate_customer({'name': 'A', 'phone': '0712345678'}) == {}
    assert set(validate_customer({'name': '', 'phone': 'x', 'email': 'bad'})) == {'name', 'phone', 'email'}


def test_due_amount_derived():
    assert due_amount('1,500.00', '500', '250.50') == Decimal('1250.50')
    assert due_amount('1000', '', None) == Decimal('1000.00')


def test_oversized_amount_is_a_field_error():
    with pytest.raises(ValueError):
        parse_amount('1' * 30)
    errors = validate_all(_record(estimated_cost='1' * 30), created=TODAY)
    assert set(errors) == {'estimated_cost'}


def test_non_text_notes_are_a_field_error():
    assert validate_notes(12345) == 'Notes must be text'
    assert set(validate_all(_record(additional_notes=12345), created=TODAY)) == {'additional_notes'}
