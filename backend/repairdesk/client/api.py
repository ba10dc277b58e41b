"""
RepairDesk API client.

Thin wrapper over the Flask REST backend used by the client-side core
(identity resolution and the repair assembler). Every call either returns
the decoded JSON body or raises from the shared error taxonomy:

  404            -> NotFoundError (a legitimate branch for callers)
  other >= 400   -> ApiError(status, detail, fields)
  transport      -> ApiError(None, ...), logged at warning first

The access token is decoded once, at login(), into a SessionContext that is
kept on the client and can be handed to other components explicitly.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from repairdesk.errors import ApiError, NotFoundError
from repairdesk.services.warranty import WarrantyInfo
from repairdesk.session import SessionContext
from repairdesk.technicians import TechnicianRef

log = logging.getLogger('repairdesk.client')


class RepairDeskClient:
    """Client for one RepairDesk backend."""

    def __init__(self, base_url: str, session=None, timeout: float = 10,
                 context: Optional[SessionContext] = None):
        self.base_url = base_url.rstrip('/')
        self.http = session or requests.Session()
        self.timeout = timeout
        self.context = context

    def _request(self, method: str, path: str, json: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        headers = self.context.auth_headers() if self.context else {}
        try:
            resp = self.http.request(method, url, json=json, params=params, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            log.warning('RepairDesk %s %s failed: %s', method, path, e)
            raise ApiError(None, f'request failed: {e}')

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.status_code < 400:
            return body if body is not None else {}

        err = (body or {}).get('error') or {}
        detail = err.get('detail') or (body or {}).get('msg') or f'HTTP {resp.status_code}'
        if resp.status_code == 404:
            raise NotFoundError(detail)
        log.warning('RepairDesk %s %s returned %s: %s', method, path, resp.status_code, detail)
        raise ApiError(resp.status_code, detail, err.get('fields'))

    # -- auth --

    def login(self, login_id: str, password: str) -> SessionContext:
        """POST /iam/auth/login; decodes the token once and keeps the context."""
        body = self._request('POST', '/iam/auth/login', json={'username': login_id, 'password': password})
        self.context = SessionContext.from_token(body['access_token'])
        log.info('logged in as %s (%s)', self.context.username, self.context.role)
        return self.context

    # -- customers --

    def get_customer_by_phone(self, phone: str) -> Dict[str, Any]:
        return self._request('GET', f"/customers/phone/{quote(phone.strip(), safe='')}")

    def search_customers(self, fragment: str) -> List[Dict[str, Any]]:
        return self._request('GET', '/customers', params={'search': fragment})['data']

    def create_customer(self, name: str, phone: str, email: Optional[str] = None) -> Dict[str, Any]:
        return self._request('POST', '/customers', json={'name': name, 'phone': phone, 'email': email})

    # -- repairs --

    def list_repairs(self, **params) -> List[Dict[str, Any]]:
        return self._request('GET', '/repairs', params=params or None)['data']

    def get_repair(self, repair_id: int) -> Dict[str, Any]:
        return self._request('GET', f'/repairs/{repair_id}')

    def create_repair(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('POST', '/repairs', json=payload)

    def update_repair(self, repair_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request('PATCH', f'/repairs/{repair_id}', json=payload)

    def update_repair_status(self, repair_id: int, status: str, previous_status: Optional[str] = None) -> Dict[str, Any]:
        payload = {'status': status}
        if previous_status is not None:
            payload['previous_status'] = previous_status
        return self._request('PATCH', f'/repairs/{repair_id}/status', json=payload)

    def delete_repair(self, repair_id: int) -> Dict[str, Any]:
        return self._request('DELETE', f'/repairs/{repair_id}')

    # -- warranty --

    def get_warranty(self, serial_number: str) -> WarrantyInfo:
        body = self._request('GET', f"/repairs/warranty/{quote(serial_number.strip(), safe='')}")
        return WarrantyInfo.from_json(body)

    def search_serial_numbers(self, fragment: str) -> List[Dict[str, Any]]:
        return self._request('GET', '/repairs/search/serial-numbers', params={'query': fragment})['data']

    # -- technicians / notifications --

    def list_technicians(self) -> List[TechnicianRef]:
        rows = self._request('GET', '/iam/users/technicians')['data']
        return [TechnicianRef.from_raw(r) for r in rows]

    def list_notifications(self, is_read: Optional[bool] = None) -> List[Dict[str, Any]]:
        params = {'is_read': 'true' if is_read else 'false'} if is_read is not None else None
        return self._request('GET', '/notifications', params=params)['data']

    def mark_notification_read(self, notification_id: int) -> Dict[str, Any]:
        return self._request('PATCH', f'/notifications/{notification_id}/read')

    def unread_count(self) -> int:
        return self._request('GET', '/notifications/unread-count')['unread']
