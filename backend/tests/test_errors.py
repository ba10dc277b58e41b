def test_unknown_path_returns_error_json(client):
    resp = client.get('/non-existent-path')
    # Flask default 404 should be wrapped by error handler
    assert resp.status_code == 404
    body = resp.get_json()
    assert 'error' in body
    assert body['error']['status'] == 404
    assert 'detail' in body['error']


def test_validation_error_carries_fields(client, app_context):
    from tests.test_utils_seed import ensure_user
    from tests.test_lifecycle_helpers import jwt_headers
    headers = jwt_headers(ensure_user('err_cashier', role='Cashier'))
    resp = client.post('/customers', json={'name': 'X', 'phone': 'nope'}, headers=headers)
    assert resp.status_code == 400
    err = resp.get_json()['error']
    assert err['title'] == 'Bad Request'
    assert err['fields'] == {'phone': 'Enter a valid mobile number (07XXXXXXXX or +947XXXXXXXX)'}


def test_internal_error_shape(client, monkeypatch):
    from repairdesk import get_db
    from repairdesk.models.user import User
    session = get_db()
    u = User(name='ErrUser', username='err_admin', email='err@example.com', role='Admin', password_hash='')
    u.set_password('pw'); session.add(u)
    session.commit()
    token = client.post('/iam/auth/login', json={'email': 'err@example.com', 'password': 'pw'}).get_json()['access_token']
    # Monkeypatch AFTER login so auth works; only break the technician directory
    import repairdesk.routes.iam as iam_mod
    class BoomSession:
        def execute(self, *a, **k):
            raise RuntimeError('explode')
    def boom_get_db():
        return BoomSession()
    monkeypatch.setattr(iam_mod, 'get_db', boom_get_db)
    headers = {'Authorization': f'Bearer {token}'}
    resp = client.get('/iam/users/technicians', headers=headers)
    assert resp.status_code == 500
    body = resp.get_json()
    assert body['error']['status'] == 500
    assert body['error']['title'] == 'Internal Server Error'
