from __future__ import annotations
from datetime import date
from typing import Any, Dict, Mapping, Optional
from flask import Blueprint, request, abort, current_app
from sqlalchemy import select, or_, cast, String
from repairdesk import get_db
from repairdesk.constants import repair_status
from repairdesk.constants.permissions import ROLE_ADMIN
from repairdesk.decorators.auth import require_permissions, require_roles
from repairdesk.decorators.audit import audit_log
from repairdesk.errors import ValidationError
from repairdesk.models.customer import Customer
from repairdesk.models.repair import Repair, RepairProduct
from repairdesk.models.user import User
from repairdesk.services.customers import find_or_create_customer
from repairdesk.services.notifications import notify_repair_status
from repairdesk.services.policy import current_session
from repairdesk.services.warranty import lookup_serial, search_serials
from repairdesk.technicians import TechnicianRef
from repairdesk.utils.fsm import RankedTransitionValidator
from repairdesk.utils.listing import apply_pagination, apply_sort, list_response
from repairdesk.utils.validation import (
    NOT_AVAILABLE_EMAIL, normalize_phone, parse_amount, parse_date, validate_all, validate_status,
)

rpr_bp = Blueprint('repairs', __name__)

REPAIRS_FSM = RankedTransitionValidator(repair_status.STATUS_ORDER)

SORTABLE = {
    'date_received': Repair.date_received,
    'deadline': Repair.deadline,
    'status': Repair.status,
    'id': Repair.id,
}

# Fields an edit may touch; status only moves through PATCH /<id>/status
EDITABLE = (
    'customer', 'phone', 'email', 'device_type', 'device_model', 'serial_number', 'issue',
    'technician', 'deadline', 'estimated_cost', 'advance_payment', 'extra_expenses',
    'password', 'additional_notes', 'is_under_warranty', 'products',
)


@rpr_bp.get('')
@require_permissions('RPR.READ')
def list_repairs():
    session = get_db()
    q = session.query(Repair).outerjoin(Customer, Repair.customer_id == Customer.id)
    search = (request.args.get('search') or '').strip()
    if search:
        like = f'%{search}%'
        q = q.filter(or_(
            cast(Repair.id, String).ilike(like),
            Customer.name.ilike(like),
            Customer.phone.ilike(like),
            Repair.device_model.ilike(like),
            Repair.status.ilike(like),
        ))
    status = request.args.get('status')
    if status:
        q = q.filter(Repair.status == validate_status(status, Repair.ALL_STATUSES))
    technician_id = request.args.get('technician_id')
    if technician_id:
        try:
            q = q.filter(Repair.technician_id == int(technician_id))
        except ValueError:
            abort(400, description='technician_id must be int')
    sort_expr = request.args.get('sort') or '-date_received'
    q = apply_sort(q, sort_expr, SORTABLE, Repair.id)
    paged_q, total, limit, offset = apply_pagination(q)
    rows = [_repair_json(r) for r in paged_q.all()]
    return list_response(rows, total, limit, offset, marker=f'{search}|{status}|{technician_id}')


@rpr_bp.get('/statuses')
@require_permissions('RPR.READ')
def list_statuses():
    """Status options offered for a repair currently in ?current=<status>."""
    current = request.args.get('current')
    return {
        'all': REPAIRS_FSM.all_statuses(),
        'current': current,
        'next': REPAIRS_FSM.valid_next_statuses(current),
    }


@rpr_bp.get('/search/serial-numbers')
@require_permissions('WRN.READ')
def search_serial_numbers():
    query = request.args.get('query') or ''
    return {'data': search_serials(get_db(), query)}


@rpr_bp.get('/warranty/<path:serial_number>')
@require_permissions('WRN.READ')
def check_warranty(serial_number: str):
    serial_number = serial_number.strip()
    if not serial_number:
        abort(400, description='Serial number is required')
    info = lookup_serial(get_db(), serial_number)
    if info is None:
        abort(404, description='No product found with that serial number')
    return info.to_json()


@rpr_bp.get('/<int:repair_id>')
@require_permissions('RPR.READ')
def get_repair(repair_id: int):
    return _repair_json(_load(repair_id))


@rpr_bp.post('')
@require_permissions('RPR.MANAGE')
@audit_log('RPR.CREATE', entity='Repair', entity_id_key='id', meta_keys=['customer_id', 'device_type', 'status'])
def create_repair():
    session = get_db()
    data = request.json or {}
    today = date.today()
    errors = validate_all(data, created=today)
    status = data.get('status') or repair_status.INITIAL_STATUS
    if not repair_status.is_known(status):
        errors['status'] = f'Unknown status "{status}"'
    technician = _resolve_technician(session, data.get('technician'), errors)
    if errors:
        raise ValidationError(errors)
    customer = _resolve_customer(session, data)
    repair = Repair(
        customer=customer,
        technician=technician,
        status=status,
        date_received=today,
        created_by=current_session().user_id,
    )
    _apply_fields(repair, data)
    if status == repair_status.PICKED_UP:
        repair.date_completed = today
    session.add(repair)
    session.commit()
    return _repair_json(repair), 201


@rpr_bp.patch('/<int:repair_id>')
@require_permissions('RPR.MANAGE')
@audit_log('RPR.UPDATE', entity='Repair', entity_id_key='id',
           diff_keys=['customer_id', 'technician', 'deadline', 'estimated_cost', 'advance_payment', 'extra_expenses'],
           pre_fetch=lambda a, kw: _prefetch_repair(kw.get('repair_id')))
def update_repair(repair_id: int):
    session = get_db()
    repair = _load(repair_id)
    data = request.json or {}
    if 'status' in data and data['status'] != repair.status:
        abort(400, description='status changes go through PATCH /repairs/<id>/status')
    merged = _editable_view(repair)
    merged.update({k: v for k, v in data.items() if k in EDITABLE})
    errors = validate_all(merged, created=repair.date_received)
    technician = _resolve_technician(session, merged.get('technician'), errors)
    if errors:
        raise ValidationError(errors)
    customer_changed = any(k in data for k in ('customer', 'phone', 'email', 'customer_id'))
    if customer_changed:
        customer = _resolve_customer(session, merged | {'customer_id': data.get('customer_id')})
        if data.get('customer_id') is not None:
            _check_customer_echo(customer, data)
        repair.customer = customer
    repair.technician = technician
    _apply_fields(repair, merged)
    session.commit()
    return _repair_json(repair)


@rpr_bp.patch('/<int:repair_id>/status')
@require_permissions('RPR.MANAGE')
@audit_log('RPR.STATUS', entity='Repair', entity_id_key='id', diff_keys=['status'],
           pre_fetch=lambda a, kw: _prefetch_repair(kw.get('repair_id')), meta_keys=['status'])
def update_repair_status(repair_id: int):
    session = get_db()
    repair = _load(repair_id)
    data = request.json or {}
    target = data.get('status')
    if not target:
        abort(400, description='Status is required')
    expected = data.get('previous_status')
    if expected is not None and expected != repair.status:
        abort(409, description=f'Repair status is now "{repair.status}", not "{expected}"')
    previous = repair.status
    REPAIRS_FSM.assert_can_transition(previous, target)
    repair.status = target
    if target == repair_status.PICKED_UP:
        repair.date_completed = date.today()
    note = notify_repair_status(session, repair, previous, target)
    session.commit()
    current_app.logger.info('repair %s status %s -> %s', repair.id, previous, target)
    body = _repair_json(repair)
    body['notification_id'] = note.id
    return body


@rpr_bp.delete('/<int:repair_id>')
@require_roles(ROLE_ADMIN)
@audit_log('RPR.DELETE', entity='Repair', entity_id_arg='repair_id')
def delete_repair(repair_id: int):
    session = get_db()
    repair = _load(repair_id)
    session.delete(repair)
    session.commit()
    return {'status': 'deleted'}


def _load(repair_id: int) -> Repair:
    repair = get_db().execute(select(Repair).where(Repair.id == repair_id)).scalar_one_or_none()
    if not repair:
        abort(404, description='No repair found with that ID')
    return repair


def _resolve_technician(session, raw: Any, errors: Dict[str, str]) -> Optional[User]:
    """Resolve any accepted technician shape to an active Technician user, recording failures in errors."""
    if 'technician' in errors:
        return None
    try:
        ref = TechnicianRef.from_raw(raw)
    except ValueError as e:
        errors['technician'] = str(e)
        return None
    if ref is None:
        errors['technician'] = 'Technician is required'
        return None
    q = select(User).where(User.role == User.ROLE_TECHNICIAN, User.is_active.is_(True))
    if ref.is_resolved:
        q = q.where(User.id == ref.id)
    else:
        q = q.where(or_(User.name == ref.name, User.username == ref.name))
    matches = session.execute(q).scalars().all()
    if len(matches) != 1:
        errors['technician'] = 'Technician must be one active technician'
        return None
    return matches[0]


def _resolve_customer(session, data: Mapping[str, Any]) -> Customer:
    customer_id = data.get('customer_id')
    if customer_id is not None:
        customer = session.execute(select(Customer).where(Customer.id == customer_id)).scalar_one_or_none()
        if not customer:
            raise ValidationError({'customer_id': 'Customer not found'})
        return customer
    customer, _ = find_or_create_customer(session, data['customer'], data['phone'], data.get('email'))
    return customer


def _check_customer_echo(customer: Customer, data: Mapping[str, Any]):
    """Customer fields sent next to customer_id must describe that customer; edits go through /customers."""
    stored = {
        'customer': customer.name,
        'phone': customer.phone,
        'email': customer.email or NOT_AVAILABLE_EMAIL,
    }
    sent = {
        'customer': str(data.get('customer') or '').strip(),
        'phone': normalize_phone(data.get('phone')),
        'email': str(data.get('email') or '').strip() or NOT_AVAILABLE_EMAIL,
    }
    errors = {
        k: f'Does not match customer {customer.id}; edit the customer record instead'
        for k in stored if k in data and sent[k] != stored[k]
    }
    if errors:
        raise ValidationError(errors)


def _apply_fields(repair: Repair, data: Mapping[str, Any]):
    repair.device_type = str(data['device_type']).strip()
    repair.device_model = str(data['device_model']).strip()
    repair.serial_number = (str(data.get('serial_number') or '').strip()) or None
    repair.issue_description = str(data['issue']).strip()
    repair.deadline = parse_date(data['deadline'])
    repair.estimated_cost = parse_amount(data['estimated_cost'])
    repair.advance_payment = _amount_or_zero(data.get('advance_payment'))
    repair.extra_expenses = _amount_or_zero(data.get('extra_expenses'))
    repair.device_password = data.get('password') or ''
    repair.additional_notes = data.get('additional_notes') or ''
    repair.is_under_warranty = bool(data.get('is_under_warranty'))
    names = [str(p).strip() for p in (data.get('products') or []) if str(p).strip()]
    current = [p.name for p in repair.products]
    if names != current:
        repair.products = [RepairProduct(name=n) for n in names]


def _amount_or_zero(value):
    if value is None or (isinstance(value, str) and not value.strip()):
        return parse_amount(0)
    return parse_amount(value)


def _money(value) -> str:
    return f'{value:.2f}' if value is not None else '0.00'


def _editable_view(r: Repair) -> Dict[str, Any]:
    c = r.customer
    return {
        'customer': c.name if c else '',
        'phone': c.phone if c else '',
        'email': (c.email if c else None) or NOT_AVAILABLE_EMAIL,
        'device_type': r.device_type,
        'device_model': r.device_model,
        'serial_number': r.serial_number or '',
        'issue': r.issue_description,
        'technician': r.technician_id,
        'deadline': r.deadline.isoformat() if r.deadline else None,
        'date_received': r.date_received.isoformat() if r.date_received else None,
        'estimated_cost': _money(r.estimated_cost),
        'advance_payment': _money(r.advance_payment),
        'extra_expenses': _money(r.extra_expenses),
        'password': r.device_password or '',
        'additional_notes': r.additional_notes or '',
        'is_under_warranty': bool(r.is_under_warranty),
        'products': [p.name for p in r.products],
    }


def _repair_json(r: Repair):
    body = _editable_view(r)
    tech = r.technician
    body.update({
        'id': r.id,
        'customer_id': r.customer_id,
        'technician': TechnicianRef(id=tech.id, name=tech.name).to_json() if tech else {'id': r.technician_id, 'name': None},
        'status': r.status,
        'date_completed': r.date_completed.isoformat() if r.date_completed else None,
        'due_amount': _money(r.due_amount),
        'next_statuses': REPAIRS_FSM.valid_next_statuses(r.status),
    })
    return body


def _prefetch_repair(repair_id: int):
    r = get_db().execute(select(Repair).where(Repair.id == repair_id)).scalar_one_or_none()
    if not r:
        return {}
    body = _repair_json(r)
    return body
