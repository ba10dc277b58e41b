from datetime import date, timedelta
import pytest
from repairdesk.client.form import RepairForm
from repairdesk.client.identity import IdentityResolver
from repairdesk.errors import ApiError, FieldLockedError, NotFoundError
from repairdesk.services.warranty import WarrantyInfo

TODAY = date.today()


def _info(serial='SN-1', customer_name='Saman', phone='0711111111', email=None, active=True):
    purchase = TODAY - timedelta(days=100)
    return WarrantyInfo(
        serial_number=serial, product_name='ProBook 450', category='Laptop', purchase_date=purchase,
        warranty_months=12, warranty_end_date=purchase + timedelta(days=360),
        warranty_remaining_days=260 if active else 0, is_under_warranty=active,
        customer_id=1 if customer_name else None, customer_name=customer_name, phone=phone, email=email,
    )


class FakeApi:
    def __init__(self):
        self.serial_calls = []
        self.phone_calls = []
        self.warranty = {}
        self.serial_rows = []
        self.customer_rows = []
        self.hooks = {}

    def search_serial_numbers(self, fragment):
        self.serial_calls.append(fragment)
        hook = self.hooks.pop(('serial', fragment), None)
        if hook:
            hook()
        return [r for r in self.serial_rows if fragment.lower() in r['serial_number'].lower()]

    def search_customers(self, fragment):
        self.phone_calls.append(fragment)
        hook = self.hooks.pop(('phone', fragment), None)
        if hook:
            hook()
        return list(self.customer_rows)

    def get_warranty(self, serial):
        hook = self.hooks.pop(('warranty', serial), None)
        if hook:
            hook()
        outcome = self.warranty.get(serial)
        if outcome is None:
            raise NotFoundError('No product found with that serial number')
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture()
def api():
    a = FakeApi()
    a.serial_rows = [
        {'serial_number': 'ABC-100', 'product_name': 'X', 'warranty_months': 12, 'is_under_warranty': True, 'warranty_remaining_days': 5},
        {'serial_number': 'ABC-200', 'product_name': 'Y', 'warranty_months': 12, 'is_under_warranty': False, 'warranty_remaining_days': 0},
    ]
    a.customer_rows = [
        {'id': 1, 'name': 'Kamal', 'phone': '0771234567', 'email': 'k@example.com'},
        {'id': 2, 'name': 'Amal 0771', 'phone': '0719999999', 'email': 'Not Available'},
    ]
    return a


def test_serial_search_short_circuits_below_two_chars(api):
    r = IdentityResolver(api)
    assert r.search_by_serial_fragment('A') == []
    assert r.search_by_serial_fragment('  ') == []
    assert r.search_by_serial_fragment(None) == []
    assert api.serial_calls == []
    rows = r.search_by_serial_fragment(' AB ')
    assert api.serial_calls == ['AB']
    assert rows[0] == {'serial_number': 'ABC-100', 'product_name': 'X', 'is_under_warranty': True, 'warranty_remaining_days': 5}


def test_phone_search_short_circuits_and_filters_to_phone_hits(api):
    r = IdentityResolver(api)
    assert r.search_by_phone_fragment('07') == []
    assert api.phone_calls == []
    rows = r.search_by_phone_fragment('0771')
    # Amal matched on name only; phone filter drops it
    assert rows == [{'name': 'Kamal', 'phone': '0771234567', 'email': 'k@example.com', 'id': 1}]


def test_stale_serial_response_discarded(api):
    r = IdentityResolver(api)
    newer = {}
    # while the "AB" request is in flight the user types "ABC-2", whose response lands first
    api.hooks[('serial', 'AB')] = lambda: newer.setdefault('rows', r.search_by_serial_fragment('ABC-2'))
    result = r.search_by_serial_fragment('AB')
    assert [x['serial_number'] for x in newer['rows']] == ['ABC-200']
    assert [x['serial_number'] for x in result] == ['ABC-200']
    assert [x['serial_number'] for x in r.serial_results] == ['ABC-200']


def test_short_fragment_supersedes_in_flight_search(api):
    r = IdentityResolver(api)
    api.hooks[('phone', '0771')] = lambda: r.search_by_phone_fragment('0')
    assert r.search_by_phone_fragment('0771') == []
    assert r.phone_results == []


def test_resolve_fills_and_locks(api):
    api.warranty['SN-1'] = _info(email=None)
    form = RepairForm()
    info = IdentityResolver(api).resolve_warranty_by_serial('SN-1', form)
    assert info.serial_number == 'SN-1'
    assert (form['customer'], form['phone'], form['email']) == ('Saman', '0711111111', 'Not Available')
    assert (form['device_type'], form['device_model']) == ('Laptop', 'ProBook 450')
    assert form['is_under_warranty'] is True
    for f in ('customer', 'phone', 'email', 'device_type', 'device_model', 'is_under_warranty'):
        assert form.is_locked(f)
    with pytest.raises(FieldLockedError):
        form.set_field('phone', '0700000000')


def test_resolve_keeps_user_typed_device_fields(api):
    api.warranty['SN-1'] = _info()
    form = RepairForm(device_model='My Custom Model')
    IdentityResolver(api).resolve_warranty_by_serial('SN-1', form)
    assert form['device_model'] == 'My Custom Model'
    assert not form.is_locked('device_model')
    assert form['device_type'] == 'Laptop'


def test_not_found_keeps_values_and_unlocks(api):
    api.warranty['SN-1'] = _info()
    form = RepairForm()
    r = IdentityResolver(api)
    r.resolve_warranty_by_serial('SN-1', form)
    with pytest.raises(NotFoundError):
        r.resolve_warranty_by_serial('SN-404', form)
    assert form['customer'] == 'Saman'
    assert form.locked == set()
    form.set_field('phone', '0700000000')
    assert form['phone'] == '0700000000'


def test_other_errors_leave_form_untouched(api):
    api.warranty['SN-1'] = _info()
    api.warranty['SN-500'] = ApiError(500, 'boom')
    form = RepairForm()
    r = IdentityResolver(api)
    r.resolve_warranty_by_serial('SN-1', form)
    snapshot = (dict(form.values), set(form.locked))
    with pytest.raises(ApiError):
        r.resolve_warranty_by_serial('SN-500', form)
    assert (form.values, form.locked) == snapshot


def test_stale_warranty_result_does_not_touch_form(api):
    api.warranty['OLD'] = _info(serial='OLD', customer_name='Old Owner')
    api.warranty['NEW'] = _info(serial='NEW', customer_name='New Owner', phone='0722222222')
    form = RepairForm()
    r = IdentityResolver(api)
    api.hooks[('warranty', 'OLD')] = lambda: r.resolve_warranty_by_serial('NEW', form)
    assert r.resolve_warranty_by_serial('OLD', form) is None
    assert form['customer'] == 'New Owner'
    assert form['serial_number'] == 'NEW'


def test_stale_not_found_does_not_unlock(api):
    api.warranty['NEW'] = _info(serial='NEW')
    form = RepairForm()
    r = IdentityResolver(api)
    api.hooks[('warranty', 'GONE')] = lambda: r.resolve_warranty_by_serial('NEW', form)
    assert r.resolve_warranty_by_serial('GONE', form) is None
    assert form.is_locked('customer')


def test_clear_serial_cascades_to_auto_filled_customer(api):
    api.warranty['SN-1'] = _info()
    form = RepairForm()
    IdentityResolver(api).resolve_warranty_by_serial('SN-1', form)
    form.set_field('serial_number', '')
    assert (form['customer'], form['phone'], form['email']) == ('', '', '')
    assert (form['device_type'], form['device_model'], form['is_under_warranty']) == ('', '', False)
    assert form.locked == set()


def test_clear_serial_keeps_manually_entered_customer():
    form = RepairForm(customer='Manual', phone='0711111111', email='m@example.com',
                      serial_number='TYPED-1', device_type='Laptop', device_model='X')
    form.clear_serial()
    assert (form['customer'], form['phone'], form['email']) == ('Manual', '0711111111', 'm@example.com')
    assert (form['serial_number'], form['device_type'], form['device_model']) == ('', '', '')


def test_clear_customer_never_touches_device(api):
    api.warranty['SN-1'] = _info()
    form = RepairForm()
    IdentityResolver(api).resolve_warranty_by_serial('SN-1', form)
    form.clear_customer()
    assert form['customer'] == ''
    assert form['device_model'] == 'ProBook 450'
    assert form.is_locked('device_model')
    assert not form.is_locked('customer')
    # customer no longer tied to the serial
    form.clear_serial()
    assert form['device_model'] == ''


def test_sale_without_buyer_leaves_customer_alone(api):
    api.warranty['SN-STOCK'] = _info(serial='SN-STOCK', customer_name=None, phone=None)
    form = RepairForm(customer='Walk In', phone='0711111111')
    IdentityResolver(api).resolve_warranty_by_serial('SN-STOCK', form)
    assert form['customer'] == 'Walk In'
    assert not form.is_locked('customer')
    form.clear_serial()
    assert form['customer'] == 'Walk In'


def test_blank_serial_resolution_clears_without_call(api):
    form = RepairForm(serial_number='X', device_type='Laptop')
    assert IdentityResolver(api).resolve_warranty_by_serial('  ', form) is None
    assert form['device_type'] == ''


def test_constructor_with_blank_serial_keeps_device_fields():
    form = RepairForm(device_type='Laptop', device_model='Dell', serial_number='')
    assert (form['device_type'], form['device_model']) == ('Laptop', 'Dell')


def test_blanking_an_empty_serial_does_not_cascade():
    form = RepairForm(device_type='Phone')
    form.set_field('device_model', 'Galaxy A54')
    form.set_field('serial_number', '  ')
    assert (form['device_type'], form['device_model']) == ('Phone', 'Galaxy A54')
    form.set_field('serial_number', 'TYPED-9')
    form.set_field('serial_number', '')
    assert (form['device_type'], form['device_model']) == ('', '')


def test_walk_in_serial_after_owned_serial_drops_previous_owner(api):
    api.warranty['SN-1'] = _info(customer_name='Alice', phone='0711111111')
    api.warranty['SN-STOCK'] = _info(serial='SN-STOCK', customer_name=None, phone=None)
    form = RepairForm()
    r = IdentityResolver(api)
    r.resolve_warranty_by_serial('SN-1', form)
    r.resolve_warranty_by_serial('SN-STOCK', form)
    assert (form['customer'], form['phone'], form['email']) == ('', '', '')
    assert not form.is_locked('customer')
    form.set_field('customer', 'Walk In')
    form.clear_serial()
    assert form['customer'] == 'Walk In'
