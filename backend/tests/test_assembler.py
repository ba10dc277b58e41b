from datetime import date, timedelta
from decimal import Decimal
import pytest
from repairdesk.client.assembler import RepairAssembler
from repairdesk.client.form import RepairForm
from repairdesk.errors import ApiError, NotFoundError, TransitionError, ValidationError
from repairdesk.technicians import TechnicianRef


class RecordingApi:
    def __init__(self, customers=None, lookup_error=None):
        self.customers = dict(customers or {})
        self.lookup_error = lookup_error
        self.calls = []

    def get_customer_by_phone(self, phone):
        self.calls.append(('lookup', phone))
        if self.lookup_error:
            raise self.lookup_error
        if phone not in self.customers:
            raise NotFoundError('Customer not found')
        return self.customers[phone]

    def create_customer(self, name, phone, email=None):
        self.calls.append(('create_customer', name, phone, email))
        row = {'id': 77, 'name': name, 'phone': phone, 'email': email}
        self.customers[phone] = row
        return row

    def create_repair(self, payload):
        self.calls.append(('create_repair', payload))
        return dict(payload, id=501, status=payload.get('status') or 'Pending')

    def update_repair_status(self, repair_id, status, previous_status=None):
        self.calls.append(('status', repair_id, status, previous_status))
        return {'id': repair_id, 'status': status}


def _record(**overrides):
    record = {
        'customer': 'Nuwan Perera', 'phone': '0712345678', 'email': 'Not Available',
        'device_type': 'Laptop', 'device_model': 'Dell Inspiron 15', 'serial_number': '',
        'issue': 'Overheating', 'technician': TechnicianRef(id=4, name='Kasun'),
        'deadline': (date.today() + timedelta(days=3)).isoformat(),
        'estimated_cost': '4,500.00', 'advance_payment': '1,000.00', 'extra_expenses': '',
        'additional_notes': '', 'is_under_warranty': False, 'products': [],
    }
    record.update(overrides)
    return record


def test_advance_over_estimate_blocks_submit():
    api = RecordingApi()
    with pytest.raises(ValidationError) as exc:
        RepairAssembler(api).submit(_record(estimated_cost='1,500.00', advance_payment='2,000.00'))
    assert set(exc.value.errors) == {'advance_payment'}
    assert api.calls == []


def test_validate_all_reports_failures_only():
    errors = RepairAssembler(RecordingApi()).validate_all(_record(phone='12345', technician=None))
    assert set(errors) == {'phone', 'technician'}


def test_unknown_phone_creates_customer_then_repair():
    api = RecordingApi()
    created = RepairAssembler(api).submit(_record())
    assert [c[0] for c in api.calls] == ['lookup', 'create_customer', 'create_repair']
    assert api.calls[1] == ('create_customer', 'Nuwan Perera', '0712345678', 'Not Available')
    payload = api.calls[2][1]
    assert payload['customer_id'] == 77
    assert payload['technician'] == 4
    assert 'status' not in payload
    assert created['id'] == 501


def test_known_phone_reuses_customer():
    api = RecordingApi(customers={'0712345678': {'id': 9, 'name': 'Nuwan Perera', 'phone': '0712345678'}})
    RepairAssembler(api).submit(_record())
    assert [c[0] for c in api.calls] == ['lookup', 'create_repair']
    assert api.calls[1][1]['customer_id'] == 9


def test_lookup_failure_is_not_treated_as_missing():
    api = RecordingApi(lookup_error=ApiError(503, 'unavailable'))
    with pytest.raises(ApiError):
        RepairAssembler(api).submit(_record())
    assert [c[0] for c in api.calls] == ['lookup']


def test_submit_from_form_uses_technician_id():
    api = RecordingApi()
    form = RepairForm(**{k: v for k, v in _record().items() if k != 'technician'})
    form.set_field('technician', {'id': '12', 'name': 'Nimali'})
    RepairAssembler(api).submit(form)
    assert api.calls[-1][1]['technician'] == 12


def test_rejected_transition_never_calls_api():
    api = RecordingApi()
    with pytest.raises(TransitionError) as exc:
        RepairAssembler(api).change_status(3, 'Completed', 'Pending')
    assert 'Completed' in str(exc.value)
    assert api.calls == []


def test_forward_transition_carries_previous_status():
    api = RecordingApi()
    assert RepairAssembler(api).change_status(3, 'Completed', 'Picked Up')['status'] == 'Picked Up'
    assert api.calls == [('status', 3, 'Picked Up', 'Completed')]


def test_due_amount():
    assembler = RepairAssembler(RecordingApi())
    assert assembler.due_amount(_record(extra_expenses='250')) == Decimal('3750.00')
    assert assembler.due_amount(_record(advance_payment='')) == Decimal('4500.00')
