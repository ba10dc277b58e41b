from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select, or_, func
from repairdesk import get_db
from repairdesk.constants.permissions import ROLE_ADMIN
from repairdesk.decorators.auth import require_permissions, require_roles
from repairdesk.decorators.audit import audit_log
from repairdesk.models.customer import Customer
from repairdesk.models.repair import Repair
from repairdesk.services.customers import create_customer, update_customer, find_by_phone, customer_json
from repairdesk.utils.listing import apply_pagination, apply_sort, list_response

cust_bp = Blueprint('customers', __name__)

SORTABLE = {
    'name': Customer.name,
    'phone': Customer.phone,
    'date_created': Customer.date_created,
    'id': Customer.id,
}


@cust_bp.get('')
@require_permissions('CUST.READ')
def list_customers():
    session = get_db()
    q = session.query(Customer)
    search = (request.args.get('search') or '').strip()
    if search:
        like = f'%{search}%'
        q = q.filter(or_(Customer.name.ilike(like), Customer.phone.ilike(like), Customer.email.ilike(like)))
    q = apply_sort(q, request.args.get('sort') or 'name', SORTABLE, Customer.id)
    paged_q, total, limit, offset = apply_pagination(q)
    rows = [customer_json(c) for c in paged_q.all()]
    return list_response(rows, total, limit, offset, marker=search)


@cust_bp.get('/<int:customer_id>')
@require_permissions('CUST.READ')
def get_customer(customer_id: int):
    c = get_db().execute(select(Customer).where(Customer.id == customer_id)).scalar_one_or_none()
    if not c:
        abort(404, description='No customer found with that ID')
    return customer_json(c)


@cust_bp.get('/phone/<path:phone>')
@require_permissions('CUST.READ')
def find_customer_by_phone(phone: str):
    c = find_by_phone(get_db(), phone)
    if not c:
        abort(404, description='No customer found with that phone number')
    return customer_json(c)


@cust_bp.post('')
@require_permissions('CUST.MANAGE')
@audit_log('CUST.CREATE', entity='Customer', entity_id_key='id', meta_keys=['name', 'phone'])
def create():
    session = get_db()
    c = create_customer(session, request.json or {})
    session.commit()
    return customer_json(c), 201


@cust_bp.patch('/<int:customer_id>')
@require_permissions('CUST.MANAGE')
@audit_log('CUST.UPDATE', entity='Customer', entity_id_key='id', diff_keys=['name', 'phone', 'email'],
           pre_fetch=lambda a, kw: _prefetch_customer(kw.get('customer_id')))
def update(customer_id: int):
    session = get_db()
    c = session.execute(select(Customer).where(Customer.id == customer_id)).scalar_one_or_none()
    if not c:
        abort(404, description='Customer not found')
    update_customer(session, c, request.json or {})
    session.commit()
    return customer_json(c)


@cust_bp.delete('/<int:customer_id>')
@require_roles(ROLE_ADMIN)
@audit_log('CUST.DELETE', entity='Customer', entity_id_arg='customer_id')
def delete(customer_id: int):
    session = get_db()
    c = session.execute(select(Customer).where(Customer.id == customer_id)).scalar_one_or_none()
    if not c:
        abort(404, description='Customer not found')
    repairs = session.execute(select(func.count(Repair.id)).where(Repair.customer_id == c.id)).scalar_one()
    if repairs:
        abort(400, description='Cannot delete customer with associated repair records')
    session.delete(c)
    session.commit()
    return {'status': 'deleted'}


def _prefetch_customer(customer_id: int):
    c = get_db().execute(select(Customer).where(Customer.id == customer_id)).scalar_one_or_none()
    if not c:
        return {}
    return customer_json(c)
