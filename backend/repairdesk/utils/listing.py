from __future__ import annotations
"""List endpoint plumbing: pagination, multi-field sort, ETag + If-None-Match.

Response body shape for every collection:
    {"data": [...], "pagination": {"total", "limit", "offset", "returned"}}
"""
import hashlib
from typing import Dict, Iterable, Optional, Tuple
from flask import request, abort, make_response
from sqlalchemy.orm import Query
from repairdesk.config.pagination import normalize_pagination


def apply_pagination(q: Query) -> Tuple[Query, int, int, int]:
    try:
        limit, offset = normalize_pagination(request.args.get('limit'), request.args.get('offset'))
    except ValueError as e:
        abort(400, description=str(e))
    total = q.count()
    return q.offset(offset).limit(limit), total, limit, offset


def apply_sort(query, sort_expr: Optional[str], allowed: Dict[str, object], tie_breaker):
    """Comma-separated sort tokens, '-' prefix for descending; tie_breaker keeps paging stable."""
    if not sort_expr:
        return query.order_by(tie_breaker.asc())
    clauses = []
    for raw in sort_expr.split(','):
        token = raw.strip()
        if not token:
            continue
        desc = token.startswith('-')
        key = token[1:] if desc else token
        col = allowed.get(key)
        if col is None:
            abort(400, description=f'Invalid sort field {key}')
        clauses.append(col.desc() if desc else col.asc())
    clauses.append(tie_breaker.asc())
    return query.order_by(*clauses)


def compute_etag(ids: Iterable, total: int, limit: int, offset: int, marker: str = '') -> str:
    seed = f"{list(ids)}|{total}|{limit}|{offset}|{marker}"
    return hashlib.sha256(seed.encode()).hexdigest()[:32]


def build_list_payload(rows: list, total: int, limit: int, offset: int):
    return {
        'data': rows,
        'pagination': {
            'total': total,
            'limit': limit,
            'offset': offset,
            'returned': len(rows)
        }
    }


def list_response(rows: list, total: int, limit: int, offset: int, marker: str = ''):
    """Build the JSON list response, or a bare 304 when If-None-Match matches."""
    etag = compute_etag([r.get('id') for r in rows], total, limit, offset, marker)
    inm = request.headers.get('If-None-Match')
    if inm and inm.strip('"') == etag:
        resp = make_response('', 304)
    else:
        resp = make_response(build_list_payload(rows, total, limit, offset))
    resp.headers['ETag'] = etag
    return resp
