import pytest
from repairdesk.technicians import TechnicianRef
from tests.test_utils_seed import ensure_user
from tests.test_lifecycle_helpers import jwt_headers


@pytest.mark.parametrize('raw,expected', [
    (5, TechnicianRef(id=5)),
    ('12', TechnicianRef(id=12)),
    (' Kasun ', TechnicianRef(id=None, name='Kasun')),
    ({'id': 3, 'name': 'Nimali'}, TechnicianRef(id=3, name='Nimali')),
    ({'User_ID': '4', 'Username': 'ruwan'}, TechnicianRef(id=4, name='ruwan')),
    ({'user_id': 9}, TechnicianRef(id=9)),
])
def test_from_raw_normalizes_every_shape(raw, expected):
    assert TechnicianRef.from_raw(raw) == expected


@pytest.mark.parametrize('raw', [None, '', '   ', {}, True])
def test_from_raw_empty_values(raw):
    assert TechnicianRef.from_raw(raw) is None


def test_from_raw_rejects_garbage():
    with pytest.raises(ValueError):
        TechnicianRef.from_raw(['x'])
    with pytest.raises(ValueError):
        TechnicianRef.from_raw({'id': 'abc'})


def test_from_raw_passes_refs_through():
    ref = TechnicianRef(id=1, name='A')
    assert TechnicianRef.from_raw(ref) is ref
    assert ref.is_resolved and not TechnicianRef(id=None, name='B').is_resolved
    assert ref.to_json() == {'id': 1, 'name': 'A'}


def test_technician_directory_lists_active_only(client, app_context):
    active = ensure_user('dir_tech_a', name='Dir Active')
    ensure_user('dir_tech_b', name='Dir Inactive', is_active=False)
    ensure_user('dir_cashier', role='Cashier', name='Dir Cashier')
    resp = client.get('/iam/users/technicians', headers=jwt_headers(active))
    assert resp.status_code == 200
    names = {row['name'] for row in resp.get_json()['data']}
    assert 'Dir Active' in names
    assert 'Dir Inactive' not in names
    assert 'Dir Cashier' not in names
    row = next(r for r in resp.get_json()['data'] if r['name'] == 'Dir Active')
    assert row == {'id': active.id, 'name': 'Dir Active'}
