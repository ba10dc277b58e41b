from __future__ import annotations
"""Rank-based transition validator for one-directional lifecycles.

A lifecycle is described by a mapping label -> integer rank. A move is allowed
when both labels are known and the target ranks strictly higher; skipping
ranks is fine, staying put or moving back is not.

Usage:
    from repairdesk.utils.fsm import RankedTransitionValidator
    REPAIRS_FSM = RankedTransitionValidator(STATUS_ORDER)
    REPAIRS_FSM.valid_next_statuses('Pending')
    REPAIRS_FSM.assert_can_transition(current, target)   # 400 abort if invalid

Everything except assert_can_transition is pure and never raises.
"""
from typing import Dict, List, Optional
from flask import abort


class RankedTransitionValidator:
    def __init__(self, order: Dict[str, int], field_name: str = 'status'):
        self.order = dict(order)
        self.field_name = field_name

    def _rank(self, label: Optional[str]) -> Optional[int]:
        if not isinstance(label, str):
            return None
        return self.order.get(label)

    def all_statuses(self) -> List[str]:
        return sorted(self.order, key=self.order.__getitem__)

    def valid_next_statuses(self, current: Optional[str]) -> List[str]:
        current_rank = self._rank(current)
        if current_rank is None:
            # initial-state selection: nothing chosen yet, offer every status
            return self.all_statuses()
        return [s for s in self.all_statuses() if self.order[s] > current_rank]

    def is_valid_transition(self, current: Optional[str], target: Optional[str]) -> bool:
        current_rank = self._rank(current)
        target_rank = self._rank(target)
        if current_rank is None or target_rank is None:
            return False
        return target_rank > current_rank

    def explain_invalid_transition(self, current: Optional[str], target: Optional[str]) -> str:
        if self._rank(current) is None:
            return f'Current {self.field_name} "{current}" is not recognized.'
        if self._rank(target) is None:
            return f'New {self.field_name} "{target}" is not recognized.'
        if not self.is_valid_transition(current, target):
            return (
                f'Cannot change {self.field_name} from "{current}" to "{target}". '
                f'{self.field_name.capitalize()} can only progress forward, not backward.'
            )
        return ''

    def assert_can_transition(self, current: Optional[str], target: Optional[str]):
        message = self.explain_invalid_transition(current, target)
        if message:
            abort(400, description=message)
        return True


__all__ = ['RankedTransitionValidator']
