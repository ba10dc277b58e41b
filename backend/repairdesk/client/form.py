from __future__ import annotations
"""In-memory state of the Add/Edit Repair form.

Tracks which fields the user typed themselves, which were filled (and locked)
by a warranty lookup, and whether the customer block came from that lookup,
so that clearing the serial number can cascade correctly.
"""
from typing import Any, Dict, Iterable, Set

from repairdesk.errors import FieldLockedError
from repairdesk.services.warranty import WarrantyInfo
from repairdesk.technicians import TechnicianRef
from repairdesk.utils.validation import NOT_AVAILABLE_EMAIL

CUSTOMER_FIELDS = ('customer', 'phone', 'email')
DEVICE_FIELDS = ('device_type', 'device_model')
WARRANTY_FLAG = 'is_under_warranty'

DEFAULTS: Dict[str, Any] = {
    'customer': '',
    'phone': '',
    'email': '',
    'device_type': '',
    'device_model': '',
    'serial_number': '',
    'issue': '',
    'technician': None,
    'status': None,
    'deadline': '',
    'estimated_cost': '',
    'advance_payment': '',
    'extra_expenses': '',
    'password': '',
    'additional_notes': '',
    'is_under_warranty': False,
    'products': [],
}


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class RepairForm:
    def __init__(self, **values: Any):
        self.values: Dict[str, Any] = dict(DEFAULTS, products=[])
        self.locked: Set[str] = set()
        self.user_provided: Set[str] = set()
        self.customer_from_serial = False
        for k, v in values.items():
            if k not in DEFAULTS:
                raise KeyError(k)
            self._assign(k, v)

    def __getitem__(self, field: str) -> Any:
        return self.values[field]

    def get(self, field: str, default: Any = None) -> Any:
        return self.values.get(field, default)

    def is_locked(self, field: str) -> bool:
        return field in self.locked

    def set_field(self, field: str, value: Any):
        """Direct user edit. Locked fields refuse; clearing a filled serial cascades."""
        if field not in DEFAULTS:
            raise KeyError(field)
        if field in self.locked:
            raise FieldLockedError(field)
        if field == 'serial_number' and _blank(value) and not _blank(self.values['serial_number']):
            self.clear_serial()
            return
        self._assign(field, value)

    def _assign(self, field: str, value: Any):
        if field == 'technician':
            value = TechnicianRef.from_raw(value)
        self.values[field] = value
        if _blank(value):
            self.user_provided.discard(field)
        else:
            self.user_provided.add(field)

    def apply_warranty(self, info: WarrantyInfo):
        """Fill from a resolved serial and lock what was filled; device fields the user typed are kept."""
        self.values['serial_number'] = info.serial_number
        filled = []
        # walk-in stock sales carry no buyer; a typed-in customer stays
        has_customer = bool(info.customer_name or info.phone)
        if has_customer:
            self.values['customer'] = info.customer_name or ''
            self.values['phone'] = info.phone or ''
            self.values['email'] = info.email or NOT_AVAILABLE_EMAIL
            filled.extend(CUSTOMER_FIELDS)
        elif self.customer_from_serial:
            # the previous serial's owner does not belong to this unit
            self._reset(CUSTOMER_FIELDS)
            self.locked.difference_update(CUSTOMER_FIELDS)
        if 'device_type' not in self.user_provided:
            self.values['device_type'] = info.category or ''
            filled.append('device_type')
        if 'device_model' not in self.user_provided:
            self.values['device_model'] = info.product_name or ''
            filled.append('device_model')
        self.values[WARRANTY_FLAG] = bool(info.is_under_warranty)
        filled.append(WARRANTY_FLAG)
        for f in filled:
            self.user_provided.discard(f)
        self.locked.update(filled)
        self.customer_from_serial = has_customer

    def warranty_not_found(self):
        """Serial did not resolve: keep every value, release earlier locks."""
        self.locked.clear()
        self.customer_from_serial = False

    def clear_serial(self):
        self.values['serial_number'] = ''
        cleared: Iterable[str] = DEVICE_FIELDS + (WARRANTY_FLAG,)
        if self.customer_from_serial:
            cleared = tuple(cleared) + CUSTOMER_FIELDS
        self._reset(cleared)
        self.user_provided.discard('serial_number')
        self.locked.clear()
        self.customer_from_serial = False

    def clear_customer(self):
        self._reset(CUSTOMER_FIELDS)
        self.locked.difference_update(CUSTOMER_FIELDS)
        self.customer_from_serial = False

    def _reset(self, fields: Iterable[str]):
        for f in fields:
            self.values[f] = DEFAULTS[f]
            self.user_provided.discard(f)

    def to_record(self) -> Dict[str, Any]:
        """Plain dict for validation and submission; the technician collapses to its id (or name)."""
        record = dict(self.values)
        record['products'] = list(self.values['products'] or [])
        tech = self.values['technician']
        if isinstance(tech, TechnicianRef):
            record['technician'] = tech.id if tech.is_resolved else tech.name
        return record


__all__ = ['RepairForm', 'CUSTOMER_FIELDS', 'DEVICE_FIELDS', 'WARRANTY_FLAG']
