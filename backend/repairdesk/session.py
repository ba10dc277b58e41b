from __future__ import annotations
"""Explicit session context.

The access token is decoded exactly once, at the login boundary, into an
immutable SessionContext. Components that need the caller's identity take
the context as an argument instead of reaching into ambient storage.

Server side the context is built from the already-verified JWT claims
(`from_claims`); client side from the raw token handed back by
/iam/auth/login (`from_token`). Signature verification is the server's job;
the client only needs the claims to decide what to show.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional

import jwt as pyjwt

from repairdesk.constants.permissions import ROLE_ADMIN, ROLE_TECHNICIAN


@dataclass(frozen=True)
class SessionContext:
    user_id: int
    username: str
    role: str
    perms: FrozenSet[str] = field(default_factory=frozenset)
    name: Optional[str] = None
    token: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_claims(cls, claims: Dict[str, Any], token: Optional[str] = None) -> 'SessionContext':
        sub = claims.get('sub')
        if sub is None:
            raise ValueError('token has no subject')
        return cls(
            user_id=int(sub),
            username=claims.get('username') or '',
            role=claims.get('role') or '',
            perms=frozenset(claims.get('perms') or []),
            name=claims.get('name'),
            token=token,
        )

    @classmethod
    def from_token(cls, token: str) -> 'SessionContext':
        claims = pyjwt.decode(token, options={'verify_signature': False})
        return cls.from_claims(claims, token=token)

    def has_permissions(self, *codes: str) -> bool:
        return all(c in self.perms for c in codes)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_technician(self) -> bool:
        return self.role == ROLE_TECHNICIAN

    def auth_headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {'Authorization': f'Bearer {self.token}'}


__all__ = ['SessionContext']
