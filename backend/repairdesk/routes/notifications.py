from flask import Blueprint, request, abort
from sqlalchemy import select, or_, func
from repairdesk import get_db
from repairdesk.decorators.auth import require_permissions
from repairdesk.models.notification import Notification
from repairdesk.services.notifications import notification_json
from repairdesk.services.policy import current_session
from repairdesk.utils.listing import apply_pagination, list_response

ntf_bp = Blueprint('notifications', __name__)


def _visible(q):
    # broadcasts (user_id NULL) plus anything addressed to the caller
    uid = current_session().user_id
    return q.filter(or_(Notification.user_id.is_(None), Notification.user_id == uid))


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in ('1', 'true', 'yes'):
        return True
    if value in ('0', 'false', 'no'):
        return False
    abort(400, description='is_read must be true or false')


@ntf_bp.get('')
@require_permissions('NTF.READ')
def list_notifications():
    session = get_db()
    q = _visible(session.query(Notification))
    is_read = request.args.get('is_read')
    if is_read:
        q = q.filter(Notification.is_read.is_(_parse_bool(is_read)))
    q = q.order_by(Notification.id.desc())
    paged_q, total, limit, offset = apply_pagination(q)
    rows = [notification_json(n) for n in paged_q.all()]
    return list_response(rows, total, limit, offset, marker=is_read or '')


@ntf_bp.get('/unread-count')
@require_permissions('NTF.READ')
def unread_count():
    session = get_db()
    q = _visible(session.query(func.count(Notification.id))).filter(Notification.is_read.is_(False))
    return {'unread': q.scalar() or 0}


@ntf_bp.patch('/<int:notification_id>/read')
@require_permissions('NTF.READ')
def mark_read(notification_id: int):
    session = get_db()
    n = session.execute(select(Notification).where(Notification.id == notification_id)).scalar_one_or_none()
    if not n or (n.user_id is not None and n.user_id != current_session().user_id):
        abort(404, description='Notification not found')
    n.is_read = True
    session.commit()
    return notification_json(n)
