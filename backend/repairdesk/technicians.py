from __future__ import annotations
"""Normalized technician reference.

Technicians arrive as bare ids, numeric strings, names, or dicts in a few
key spellings. `TechnicianRef.from_raw` folds all of them into one shape at
ingestion time so nothing downstream has to type-test.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TechnicianRef:
    id: Optional[int]
    name: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.id is not None

    @classmethod
    def from_raw(cls, raw: Any) -> Optional['TechnicianRef']:
        if raw is None or isinstance(raw, bool):
            return None
        if isinstance(raw, TechnicianRef):
            return raw
        if isinstance(raw, int):
            return cls(id=raw)
        if isinstance(raw, str):
            text = raw.strip()
            if not text:
                return None
            if text.isdigit():
                return cls(id=int(text))
            return cls(id=None, name=text)
        if isinstance(raw, dict):
            ident = raw.get('id', raw.get('User_ID', raw.get('user_id')))
            name = raw.get('name') or raw.get('Username') or raw.get('username')
            if ident is None and not name:
                return None
            try:
                ident = int(ident) if ident is not None else None
            except (TypeError, ValueError):
                raise ValueError(f'technician id must be an integer, got {ident!r}')
            return cls(id=ident, name=name)
        raise ValueError(f'unsupported technician value {raw!r}')

    def to_json(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name}


__all__ = ['TechnicianRef']
