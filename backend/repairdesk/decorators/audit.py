from __future__ import annotations
"""Audit logging decorator for state-changing repair and customer routes.

Usage:

@audit_log('RPR.STATUS', entity='Repair', entity_id_arg='repair_id',
           diff_keys=['status'], pre_fetch=lambda a, kw: _snapshot(kw['repair_id']))
def update_status(repair_id): ...

Parameters:
  action: audit action code (RPR.CREATE, RPR.STATUS, CUST.UPDATE, ...)
  entity: entity label (Repair, Customer, User)
  entity_id_key: key in the returned JSON whose value becomes entity_id
  entity_id_arg: path parameter to fall back on when the key is absent
  meta_keys: keys projected from the returned JSON into meta
  diff_keys + pre_fetch: snapshot before the call; changed keys land in meta['changes']

Only successful responses (status < 400) are audited. The view's return value
is passed through untouched: dict, (dict, status) or (dict, status, headers).
"""

from functools import wraps
from typing import Any, Callable, Dict, Iterable, Optional

from flask import current_app

from repairdesk.services.audit import add_audit
from repairdesk import get_db


def _extract_payload(rv: Any):
    """Return (data, status) from a view return value."""
    if isinstance(rv, tuple) and rv:
        status = rv[1] if len(rv) > 1 and isinstance(rv[1], int) else 200
        return rv[0], status
    return rv, 200


def _changes(before: Dict[str, Any], after: Dict[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    out = {}
    for k in keys:
        if k in before and k in after and before[k] != after[k]:
            out[k] = {'before': before[k], 'after': after[k]}
    return out


def audit_log(
    action: str,
    *,
    entity: Optional[str] = None,
    entity_id_key: Optional[str] = None,
    entity_id_arg: Optional[str] = None,
    meta_keys: Optional[Iterable[str]] = None,
    diff_keys: Optional[Iterable[str]] = None,
    pre_fetch: Optional[Callable[[tuple, dict], Dict[str, Any]]] = None,
):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            before = pre_fetch(args, kwargs) if (diff_keys and pre_fetch) else None
            rv = fn(*args, **kwargs)
            data, status = _extract_payload(rv)
            if status >= 400:
                return rv
            if not isinstance(data, dict):
                data = {}
            entity_id = None
            if entity_id_key and entity_id_key in data:
                entity_id = data.get(entity_id_key)
            elif entity_id_arg and entity_id_arg in kwargs:
                entity_id = kwargs.get(entity_id_arg)
            meta = {k: data.get(k) for k in (meta_keys or ()) if k in data}
            if before:
                changes = _changes(before, data, diff_keys)
                if changes:
                    meta['changes'] = changes
            add_audit(action, entity, entity_id, meta)
            try:
                get_db().commit()
            except Exception:
                # primary change is already committed
                current_app.logger.exception('audit commit failed for %s', action)
                get_db().rollback()
            return rv
        return wrapper
    return outer
