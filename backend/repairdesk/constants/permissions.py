"""Central enum-like definitions to avoid typos in permission/service strings.
Never rename codes silently; add new ones and migrate callers.
"""
from __future__ import annotations
from typing import List, Dict

SERVICES = ['RPR', 'CUST', 'PRD', 'WRN', 'NTF', 'ADMIN']

SERVICE_ACTIONS = {
    'RPR': ['READ', 'MANAGE'],
    'CUST': ['READ', 'MANAGE'],
    'PRD': ['READ', 'MANAGE'],
    'WRN': ['READ'],
    'NTF': ['READ'],
    'ADMIN': ['USER.MANAGE', 'AUDIT.READ'],
}

ROLE_ADMIN = 'Admin'
ROLE_CASHIER = 'Cashier'
ROLE_TECHNICIAN = 'Technician'
ALL_ROLES = (ROLE_ADMIN, ROLE_CASHIER, ROLE_TECHNICIAN)


def build_all_permission_codes() -> List[str]:
    codes: List[str] = []
    for svc, actions in SERVICE_ACTIONS.items():
        for act in actions:
            codes.append(f"{svc}.{act}")
    return codes

ALL_PERMISSION_CODES = build_all_permission_codes()

ROLE_PRESETS: Dict[str, List[str]] = {
    ROLE_ADMIN: ['*'],
    # Both desks log repairs and register walk-in customers; Cashier also keeps stock.
    # Deletes and staff admin stay with Admin
    ROLE_CASHIER: ['CUST.READ', 'CUST.MANAGE', 'RPR.READ', 'RPR.MANAGE', 'PRD.READ', 'PRD.MANAGE', 'WRN.READ', 'NTF.READ'],
    ROLE_TECHNICIAN: ['RPR.READ', 'RPR.MANAGE', 'CUST.READ', 'CUST.MANAGE', 'PRD.READ', 'WRN.READ', 'NTF.READ'],
}


def permissions_for_role(role: str) -> List[str]:
    codes = ROLE_PRESETS.get(role, [])
    if '*' in codes:
        return sorted(ALL_PERMISSION_CODES)
    return sorted(codes)
