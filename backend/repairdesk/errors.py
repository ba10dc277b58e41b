"""Error taxonomy shared by the server routes and the client-side core.

ValidationError   field-scoped, local, recoverable by correcting input
NotFoundError     collaborator answered 404 / empty; a legitimate branch
ApiError          any other collaborator failure; always surfaced
TransitionError   rejected status change (carries the explanation)
FieldLockedError  direct edit of a field locked by warranty resolution
"""
from __future__ import annotations
from typing import Dict, Optional


class RepairDeskError(Exception):
    pass


class ValidationError(RepairDeskError):
    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        fields = ', '.join(sorted(self.errors))
        super().__init__(f'validation failed: {fields}')


class NotFoundError(RepairDeskError):
    def __init__(self, detail: str = 'not found'):
        self.detail = detail
        super().__init__(detail)


class ApiError(RepairDeskError):
    def __init__(self, status: Optional[int], detail: str, fields: Optional[Dict[str, str]] = None):
        self.status = status
        self.detail = detail
        self.fields = fields or {}
        super().__init__(f'{status}: {detail}' if status else detail)


class TransitionError(RepairDeskError):
    def __init__(self, current: Optional[str], target: Optional[str], message: str):
        self.current = current
        self.target = target
        super().__init__(message)


class FieldLockedError(RepairDeskError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f'{field} is locked by warranty resolution; clear the serial number first')


__all__ = ['RepairDeskError', 'ValidationError', 'NotFoundError', 'ApiError', 'TransitionError', 'FieldLockedError']
