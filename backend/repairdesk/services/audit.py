from __future__ import annotations
from typing import Any, Dict, Optional
from flask_jwt_extended import get_jwt
from repairdesk import get_db
from repairdesk.models.audit import AuditLog


def add_audit(action: str, entity: Optional[str] = None, entity_id: Optional[str] = None, meta: Optional[Dict[str, Any]] = None):
    """Persist an audit log entry within the current DB session.

    Parameters:
      action: short action code e.g. RPR.CREATE, RPR.STATUS, CUST.DELETE
      entity: optional entity name (Repair, Customer, User)
      entity_id: optional primary key string
      meta: additional JSON-safe dictionary (shallow copied)
    """
    session = get_db()
    claims = {}
    try:
        claims = get_jwt() or {}
    except RuntimeError:
        pass  # outside a verified request (scripts, seeds); actor stays 0
    try:
        actor = int(claims['sub']) if claims.get('sub') is not None else 0
    except (TypeError, ValueError):
        actor = 0
    log = AuditLog(
        actor_user_id=actor,
        actor_role=claims.get('role'),
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        meta=dict(meta or {}),
    )
    session.add(log)
    # No commit here; caller's transaction boundary controls durability.
    return log
