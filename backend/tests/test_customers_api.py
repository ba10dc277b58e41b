from flask import Flask
from repairdesk import get_db
from repairdesk.models.customer import Customer
from tests.test_utils_seed import ensure_user, ensure_customer
from tests.test_lifecycle_helpers import jwt_headers, repair_payload, create_repair_and_assert


def _headers(username='cust_cashier', role='Cashier'):
    return jwt_headers(ensure_user(username, role=role))


def test_create_and_fetch_customer(app_context: Flask):
    client = app_context.test_client()
    headers = _headers()
    resp = client.post('/customers', json={'name': 'Nadeesha', 'phone': '+94 77 222 0001', 'email': 'nadeesha@example.com'}, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    assert body['phone'] == '+94772220001'
    cid = body['id']
    assert client.get(f'/customers/{cid}', headers=headers).get_json()['name'] == 'Nadeesha'
    by_phone = client.get('/customers/phone/+94772220001', headers=headers)
    assert by_phone.status_code == 200
    assert by_phone.get_json()['id'] == cid


def test_phone_lookup_not_found(app_context: Flask):
    client = app_context.test_client()
    resp = client.get('/customers/phone/0772229999', headers=_headers())
    assert resp.status_code == 404
    assert resp.get_json()['error']['detail'] == 'No customer found with that phone number'


def test_duplicate_phone_and_email_rejected(app_context: Flask):
    client = app_context.test_client()
    headers = _headers()
    ensure_customer('0772220002', name='First', email='first@example.com')
    resp = client.post('/customers', json={'name': 'Dup', 'phone': '077 222 0002', 'email': 'first@example.com'}, headers=headers)
    assert resp.status_code == 400
    assert set(resp.get_json()['error']['fields']) == {'phone', 'email'}


def test_create_customer_validation(app_context: Flask):
    client = app_context.test_client()
    resp = client.post('/customers', json={'name': '', 'phone': '555'}, headers=_headers())
    assert resp.status_code == 400
    assert set(resp.get_json()['error']['fields']) == {'name', 'phone'}


def test_not_available_email_stored_as_null(app_context: Flask):
    client = app_context.test_client()
    resp = client.post('/customers', json={'name': 'No Mail', 'phone': '0772220003', 'email': 'Not Available'}, headers=_headers())
    assert resp.status_code == 201
    assert resp.get_json()['email'] == 'Not Available'
    assert get_db().query(Customer).filter_by(phone='0772220003').one().email is None


def test_update_customer(app_context: Flask):
    client = app_context.test_client()
    headers = _headers()
    c = ensure_customer('0772220004', name='Old Name')
    ensure_customer('0772220005', name='Taken')
    resp = client.patch(f'/customers/{c.id}', json={'name': 'New Name'}, headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()['name'] == 'New Name'
    clash = client.patch(f'/customers/{c.id}', json={'phone': '0772220005'}, headers=headers)
    assert clash.status_code == 400
    assert client.patch('/customers/999999', json={'name': 'x'}, headers=headers).status_code == 404


def test_search_customers(app_context: Flask):
    client = app_context.test_client()
    headers = _headers()
    ensure_customer('0772220006', name='Searchable Perera')
    resp = client.get('/customers?search=Searchable', headers=headers)
    assert resp.status_code == 200
    assert [r['phone'] for r in resp.get_json()['data']] == ['0772220006']
    resp = client.get('/customers?search=2220006', headers=headers)
    assert resp.get_json()['pagination']['total'] == 1


def test_delete_customer_admin_only_and_blocked_by_repairs(app_context: Flask):
    client = app_context.test_client()
    admin_headers = _headers('cust_admin', role='Admin')
    tech = ensure_user('cust_tech')
    lonely = ensure_customer('0772220007', name='No Repairs')
    assert client.delete(f'/customers/{lonely.id}', headers=_headers()).status_code == 403
    assert client.delete(f'/customers/{lonely.id}', headers=admin_headers).status_code == 200
    busy = create_repair_and_assert(client, repair_payload(tech.id, '0772220008'), jwt_headers(tech))
    resp = client.delete(f"/customers/{busy['customer_id']}", headers=admin_headers)
    assert resp.status_code == 400
    assert 'associated repair' in resp.get_json()['error']['detail']
