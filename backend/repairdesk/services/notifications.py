from __future__ import annotations
from sqlalchemy.orm import Session

from repairdesk.models.notification import Notification
from repairdesk.models.repair import Repair


def notify_repair_status(session: Session, repair: Repair, previous_status: str, new_status: str) -> Notification:
    """Broadcast a status-change notice to staff; caller commits."""
    customer_name = repair.customer.name if repair.customer else 'Unknown customer'
    technician = repair.technician
    note = Notification(
        user_id=None,
        title=f'Repair #{repair.id} status updated',
        message=(
            f'{repair.device_type} {repair.device_model} for {customer_name} '
            f'moved from {previous_status} to {new_status}'
        ),
        type=Notification.TYPE_REPAIR_STATUS,
        reference_id=repair.id,
        reference_type='repair',
        data={
            'repair_id': repair.id,
            'customer': customer_name,
            'device_type': repair.device_type,
            'device_model': repair.device_model,
            'previous_status': previous_status,
            'new_status': new_status,
            'technician': {'id': technician.id, 'name': technician.name} if technician else None,
        },
    )
    session.add(note)
    return note


def notification_json(n: Notification):
    return {
        'id': n.id,
        'title': n.title,
        'message': n.message,
        'type': n.type,
        'reference_id': n.reference_id,
        'reference_type': n.reference_type,
        'data': n.data or {},
        'is_read': bool(n.is_read),
        'created_at': n.created_at.isoformat() if n.created_at else None,
    }
