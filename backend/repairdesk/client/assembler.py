"""Repair record assembly: validate locally, resolve the customer, submit.

Nothing reaches the API while validate_all reports a failing field, and a
status change the transition validator rejects never leaves the client.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Union

from repairdesk.client.form import RepairForm
from repairdesk.constants.repair_status import STATUS_ORDER
from repairdesk.errors import NotFoundError, TransitionError, ValidationError
from repairdesk.technicians import TechnicianRef
from repairdesk.utils.fsm import RankedTransitionValidator
from repairdesk.utils.validation import due_amount, validate_all

log = logging.getLogger('repairdesk.client')

REPAIR_TRANSITIONS = RankedTransitionValidator(STATUS_ORDER)

# Keys carried into POST /repairs besides the resolved customer_id
PAYLOAD_FIELDS = (
    'device_type', 'device_model', 'serial_number', 'issue', 'technician', 'status',
    'deadline', 'estimated_cost', 'advance_payment', 'extra_expenses', 'password',
    'additional_notes', 'is_under_warranty', 'products',
)


class RepairAssembler:
    """Turns form state into persisted repairs through a RepairDeskClient-like api."""

    def __init__(self, api, transitions: RankedTransitionValidator = REPAIR_TRANSITIONS):
        self.api = api
        self.transitions = transitions

    @staticmethod
    def _record(record: Union[RepairForm, Mapping[str, Any]]) -> Dict[str, Any]:
        if isinstance(record, RepairForm):
            return record.to_record()
        return dict(record)

    def validate_all(self, record: Union[RepairForm, Mapping[str, Any]]) -> Dict[str, str]:
        return validate_all(self._record(record))

    def due_amount(self, record: Union[RepairForm, Mapping[str, Any]]) -> Decimal:
        r = self._record(record)
        return due_amount(r.get('estimated_cost'), r.get('advance_payment'), r.get('extra_expenses'))

    def resolve_customer(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """Exact phone lookup; only a 404 leads to creating the customer."""
        try:
            return self.api.get_customer_by_phone(record['phone'])
        except NotFoundError:
            log.info('no customer for phone %s, creating one', record['phone'])
            return self.api.create_customer(record['customer'], record['phone'], record.get('email'))

    def build_payload(self, record: Mapping[str, Any], customer_id: int) -> Dict[str, Any]:
        payload = {k: record.get(k) for k in PAYLOAD_FIELDS if k in record}
        tech = payload.get('technician')
        if isinstance(tech, TechnicianRef):
            payload['technician'] = tech.id if tech.is_resolved else tech.name
        if not payload.get('status'):
            payload.pop('status', None)
        payload['customer_id'] = customer_id
        # the server re-validates the full record, customer block included
        for k in ('customer', 'phone', 'email'):
            payload[k] = record.get(k)
        return payload

    def submit(self, record: Union[RepairForm, Mapping[str, Any]]) -> Dict[str, Any]:
        r = self._record(record)
        errors = validate_all(r)
        if errors:
            raise ValidationError(errors)
        customer = self.resolve_customer(r)
        created = self.api.create_repair(self.build_payload(r, customer['id']))
        log.info('repair %s created for customer %s', created.get('id'), customer['id'])
        return created

    def change_status(self, repair_id: int, current: Optional[str], target: Optional[str]) -> Dict[str, Any]:
        message = self.transitions.explain_invalid_transition(current, target)
        if message:
            raise TransitionError(current, target, message)
        return self.api.update_repair_status(repair_id, target, previous_status=current)


__all__ = ['RepairAssembler', 'REPAIR_TRANSITIONS']
