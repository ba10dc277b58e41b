"""Repair lifecycle ranking.

Single source of truth for the order a repair moves through. Consumers must
treat any label missing from STATUS_ORDER as invalid; there is no fallback.
"""
from __future__ import annotations
from typing import List, Optional

PENDING = 'Pending'
COMPLETED = 'Completed'
CANNOT_REPAIR = 'Cannot Repair'
PICKED_UP = 'Picked Up'

STATUS_ORDER = {
    PENDING: 0,
    COMPLETED: 1,
    CANNOT_REPAIR: 2,
    PICKED_UP: 3,
}

INITIAL_STATUS = PENDING
TERMINAL_STATUS = PICKED_UP


def all_statuses() -> List[str]:
    return sorted(STATUS_ORDER, key=STATUS_ORDER.__getitem__)


def rank(status: Optional[str]) -> Optional[int]:
    if not isinstance(status, str):
        return None
    return STATUS_ORDER.get(status)


def is_known(status: Optional[str]) -> bool:
    return rank(status) is not None


__all__ = [
    'PENDING', 'COMPLETED', 'CANNOT_REPAIR', 'PICKED_UP', 'STATUS_ORDER',
    'INITIAL_STATUS', 'TERMINAL_STATUS', 'all_statuses', 'rank', 'is_known',
]
