from __future__ import annotations
from typing import Set
from flask import g
from flask_jwt_extended import get_jwt
from repairdesk.session import SessionContext


def current_session() -> SessionContext:
    """SessionContext for the verified token of this request.

    `g` lives on the app context, which several requests may share, so the
    cached context is only reused while the token id (jti) is unchanged.
    """
    claims = get_jwt()
    jti = claims.get('jti')
    cached = g.get('session_ctx')
    if cached is not None and jti is not None and cached[0] == jti:
        return cached[1]
    ctx = SessionContext.from_claims(claims)
    g.session_ctx = (jti, ctx)
    return ctx


def current_permissions() -> Set[str]:
    return set(current_session().perms)


def has_permissions(*codes: str) -> bool:
    return current_session().has_permissions(*codes)
