from flask import Blueprint, request, abort
from flask_jwt_extended import create_access_token, jwt_required
from sqlalchemy import select, or_
from repairdesk import get_db
from repairdesk.models.user import User
from repairdesk.models.audit import AuditLog
from repairdesk.constants.permissions import ALL_ROLES, ROLE_TECHNICIAN, permissions_for_role
from repairdesk.services.policy import current_session
from repairdesk.utils.listing import apply_pagination, list_response
from repairdesk.decorators.audit import audit_log
from repairdesk.decorators.auth import require_permissions

iam_bp = Blueprint('iam', __name__)


def _user_json(u: User):
    return {
        'id': u.id,
        'name': u.name,
        'username': u.username,
        'email': u.email,
        'phone': u.phone,
        'role': u.role,
        'is_active': bool(u.is_active),
    }


@iam_bp.post('/auth/login')
def login():
    data = request.json or {}
    login_id = data.get('email') or data.get('username')
    password = data.get('password')
    if not login_id or not password:
        abort(400, description='email (or username) & password required')
    session = get_db()
    user = session.execute(
        select(User).where(or_(User.email == login_id, User.username == login_id))
    ).scalar_one_or_none()
    if not user or not user.verify_password(password):
        abort(401, description='invalid credentials')
    if not user.is_active:
        abort(403, description='account disabled')
    claims = {
        'role': user.role,
        'perms': permissions_for_role(user.role),
        'username': user.username,
        'name': user.name,
    }
    # JWT identity must be a string (flask-jwt-extended v4 requirement)
    token = create_access_token(identity=str(user.id), additional_claims=claims)
    return {'access_token': token}


@iam_bp.get('/auth/me')
@jwt_required()
def me():
    ctx = current_session()
    session = get_db()
    user = session.execute(select(User).where(User.id == ctx.user_id)).scalar_one_or_none()
    if not user:
        abort(404)
    body = _user_json(user)
    body['perms'] = sorted(ctx.perms)
    return body


@iam_bp.post('/users')
@require_permissions('ADMIN.USER.MANAGE')
@audit_log('USER.CREATE', entity='User', entity_id_key='id', meta_keys=['username', 'role'])
def register_user():
    data = request.json or {}
    name = (data.get('name') or '').strip()
    username = (data.get('username') or '').strip()
    email = (data.get('email') or '').strip()
    password = data.get('password')
    role = data.get('role')
    if not all([name, username, email, password]):
        abort(400, description='name, username, email, password required')
    if role not in ALL_ROLES:
        abort(400, description=f"role must be one of {', '.join(ALL_ROLES)}")
    session = get_db()
    clash = session.execute(
        select(User).where(or_(User.email == email, User.username == username))
    ).scalar_one_or_none()
    if clash:
        abort(400, description='user already exists')
    user = User(name=name, username=username, email=email, phone=data.get('phone'), role=role, is_active=True, password_hash='')
    user.set_password(password)
    session.add(user)
    session.commit()
    return _user_json(user), 201


@iam_bp.get('/users')
@require_permissions('ADMIN.USER.MANAGE')
def list_users():
    session = get_db()
    q = session.query(User)
    role = request.args.get('role')
    if role:
        if role not in ALL_ROLES:
            abort(400, description='role invalid')
        q = q.filter(User.role == role)
    q = q.order_by(User.id.asc())
    paged_q, total, limit, offset = apply_pagination(q)
    rows = [_user_json(u) for u in paged_q.all()]
    return list_response(rows, total, limit, offset)


@iam_bp.get('/users/technicians')
@jwt_required()
def list_technicians():
    """Active technicians for repair assignment, normalized to {id, name}."""
    session = get_db()
    rows = session.execute(
        select(User).where(User.role == ROLE_TECHNICIAN, User.is_active.is_(True)).order_by(User.name.asc())
    ).scalars().all()
    return {'data': [{'id': u.id, 'name': u.name} for u in rows]}


@iam_bp.patch('/users/<int:user_id>/status')
@require_permissions('ADMIN.USER.MANAGE')
@audit_log('USER.STATUS', entity='User', entity_id_key='id', diff_keys=['is_active'],
           pre_fetch=lambda a, kw: _prefetch_user(kw.get('user_id')), meta_keys=['is_active'])
def update_user_status(user_id: int):
    session = get_db()
    user = session.execute(select(User).where(User.id == user_id)).scalar_one_or_none()
    if not user:
        abort(404)
    data = request.json or {}
    if not isinstance(data.get('is_active'), bool):
        abort(400, description='is_active (bool) required')
    if user.id == current_session().user_id and not data['is_active']:
        abort(400, description='cannot deactivate your own account')
    user.is_active = data['is_active']
    session.commit()
    return _user_json(user)


def _prefetch_user(user_id: int):
    user = get_db().execute(select(User).where(User.id == user_id)).scalar_one_or_none()
    if not user:
        return {}
    return {'is_active': bool(user.is_active)}


@iam_bp.get('/audit/logs')
@require_permissions('ADMIN.AUDIT.READ')
def list_audit_logs():
    session = get_db()
    q = session.query(AuditLog)
    action = request.args.get('action')
    entity = request.args.get('entity')
    entity_id = request.args.get('entity_id')
    if action:
        q = q.filter(AuditLog.action == action)
    if entity:
        q = q.filter(AuditLog.entity == entity)
    if entity_id:
        q = q.filter(AuditLog.entity_id == entity_id)
    q = q.order_by(AuditLog.id.desc())
    paged_q, total, limit, offset = apply_pagination(q)
    rows = [
        {
            'id': r.id,
            'actor_user_id': r.actor_user_id,
            'actor_role': r.actor_role,
            'action': r.action,
            'entity': r.entity,
            'entity_id': r.entity_id,
            'meta': r.meta,
            'created_at': r.created_at.isoformat() if r.created_at else None,
        } for r in paged_q.all()
    ]
    return list_response(rows, total, limit, offset)
