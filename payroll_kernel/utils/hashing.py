"""
Deterministic hashing for the project history chain.

Each entry's payload (field changes plus the project snapshot) is reduced
to a canonical JSON string and hashed; the entry hash then binds the
project id, change type, payload hash and the previous entry's hash.
Editing or deleting any row changes every hash after it.
"""

import hashlib
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable
from uuid import UUID

# Stands in for prev_hash on a project's first (CREATED) entry.
GENESIS = "GENESIS"

_CANONICAL_FORMS: tuple[tuple[type, Callable[[Any], str]], ...] = (
    # 10, 10.0 and 10.000 must hash alike
    (Decimal, lambda d: format(d.normalize(), "f")),
    (datetime, lambda dt: dt.isoformat()),
    (date, lambda d: d.isoformat()),
    (UUID, str),
    (bytes, lambda b: b.hex()),
)


def _canonical(obj: Any) -> str:
    for kind, render in _CANONICAL_FORMS:
        if isinstance(obj, kind):
            return render(obj)
    raise TypeError(f"Cannot canonicalize {type(obj).__name__}")


def canonicalize_json(data: Any) -> str:
    """Sorted keys, no whitespace, stable rendering of Decimal/date/UUID."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=_canonical)


def _sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def hash_payload(payload: dict) -> str:
    return _sha256(canonicalize_json(payload))


def hash_history_entry(
    project_id: UUID | str,
    change_type: str,
    payload_hash: str,
    prev_hash: str | None,
) -> str:
    """
    Chained hash of one project history entry.

    ``sha256("<project_id>|<change_type>|<payload_hash>|<prev_hash or GENESIS>")``
    """
    return _sha256("|".join((str(project_id), change_type, payload_hash, prev_hash or GENESIS)))
