from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional, Union

from ..core.constants import NO_MANAGER
from ..core.exceptions import ValidationError

RefKind = Literal["id", "name"]


@dataclass(frozen=True)
class EntityRef:
    """Typed reference to a department or manager.

    A plain string from a form is a human-entered name (department name or
    manager employee code). Clients that hold an id send
    {"kind": "id", "value": 3} instead.
    """

    kind: RefKind
    value: Union[int, str]


def parse_entity_ref(raw: Any, *, field: str) -> Optional[EntityRef]:
    """Return None for 'no reference' (null, empty string, 'no-manager')."""

    if raw is None:
        return None
    if isinstance(raw, str):
        value = raw.strip()
        if not value or value == NO_MANAGER:
            return None
        return EntityRef(kind="name", value=value)
    if isinstance(raw, dict):
        kind = raw.get("kind")
        value = raw.get("value")
        if kind == "id":
            try:
                return EntityRef(kind="id", value=int(value))
            except (TypeError, ValueError):
                pass
        elif kind == "name" and isinstance(value, str) and value.strip():
            return EntityRef(kind="name", value=value.strip())
    raise ValidationError(
        "Validation failed",
        details=[{"field": field, "message": 'Expected a name or {"kind": "id"|"name", "value": ...}'}],
    )
