"""Identity resolution for the repair form.

Turns what the user types into the serial-number and phone boxes into
candidate matches, and resolves a chosen serial number into warranty data
that fills (and locks) the form.

Every request is tagged on its channel before dispatch. A response that is
no longer the latest on its channel is discarded: searches then return the
latest accepted result, and a stale warranty resolution leaves the form
alone and returns None.
"""

import logging
from typing import Any, Dict, List, Optional

from repairdesk.client.form import RepairForm
from repairdesk.client.sequencing import ChannelSet
from repairdesk.errors import NotFoundError
from repairdesk.services.warranty import WarrantyInfo

log = logging.getLogger('repairdesk.client')

SERIAL_MIN_CHARS = 2
PHONE_MIN_CHARS = 3

SERIAL_CHANNEL = 'serial-search'
PHONE_CHANNEL = 'phone-search'
WARRANTY_CHANNEL = 'warranty'


class IdentityResolver:
    """Search-as-you-type lookups against a RepairDeskClient-like collaborator.

    The collaborator needs search_serial_numbers(fragment),
    search_customers(fragment) and get_warranty(serial).
    """

    def __init__(self, api):
        self.api = api
        self.channels = ChannelSet()
        self.serial_results: List[Dict[str, Any]] = []
        self.phone_results: List[Dict[str, Any]] = []

    def search_by_serial_fragment(self, fragment: Optional[str]) -> List[Dict[str, Any]]:
        channel = self.channels[SERIAL_CHANNEL]
        token = channel.issue()
        text = (fragment or '').strip()
        if len(text) < SERIAL_MIN_CHARS:
            self.serial_results = []
            return self.serial_results
        rows = self.api.search_serial_numbers(text)
        if not channel.is_current(token):
            log.debug('discarding stale serial search %d for %r (latest %d)', token, text, channel.latest)
            return self.serial_results
        self.serial_results = [
            {
                'serial_number': r['serial_number'],
                'product_name': r.get('product_name'),
                'is_under_warranty': bool(r.get('is_under_warranty')),
                'warranty_remaining_days': int(r.get('warranty_remaining_days') or 0),
            }
            for r in rows
        ]
        return self.serial_results

    def search_by_phone_fragment(self, fragment: Optional[str]) -> List[Dict[str, Any]]:
        channel = self.channels[PHONE_CHANNEL]
        token = channel.issue()
        text = (fragment or '').strip()
        if len(text) < PHONE_MIN_CHARS:
            self.phone_results = []
            return self.phone_results
        rows = self.api.search_customers(text)
        if not channel.is_current(token):
            log.debug('discarding stale phone search %d for %r (latest %d)', token, text, channel.latest)
            return self.phone_results
        # the customer search also matches names and emails; keep phone hits only
        self.phone_results = [
            {'name': r.get('name'), 'phone': r.get('phone'), 'email': r.get('email'), 'id': r.get('id')}
            for r in rows if text in (r.get('phone') or '')
        ]
        return self.phone_results

    def resolve_warranty_by_serial(self, serial: str, form: RepairForm) -> Optional[WarrantyInfo]:
        """Resolve serial and fill form.

        Raises NotFoundError after unlocking the form when the serial is
        unknown. Other errors propagate with the form untouched.
        """
        channel = self.channels[WARRANTY_CHANNEL]
        token = channel.issue()
        if not (serial or '').strip():
            form.clear_serial()
            return None
        try:
            info = self.api.get_warranty(serial)
        except NotFoundError:
            if not channel.is_current(token):
                log.debug('discarding stale warranty miss %d for %r', token, serial)
                return None
            form.warranty_not_found()
            raise
        except Exception:
            if not channel.is_current(token):
                log.warning('superseded warranty lookup %d for %r failed', token, serial, exc_info=True)
                return None
            raise
        if not channel.is_current(token):
            log.debug('discarding stale warranty result %d for %r', token, serial)
            return None
        form.apply_warranty(info)
        return info


__all__ = ['IdentityResolver', 'SERIAL_MIN_CHARS', 'PHONE_MIN_CHARS']
