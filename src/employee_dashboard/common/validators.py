from __future__ import annotations

from typing import Any, Mapping, Optional, Type, TypeVar

import pydantic
from pydantic import BaseModel

from ..core.exceptions import ValidationError

M = TypeVar("M", bound=BaseModel)


def _field_name(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "body"


def parse_payload(schema: Type[M], payload: Optional[Mapping[str, Any]]) -> M:
    """Validate a JSON body against a pydantic schema.

    pydantic errors become a domain ValidationError whose details are a list
    of {field, message} entries.
    """

    if payload is None:
        raise ValidationError(
            "Validation failed",
            details=[{"field": "body", "message": "A JSON object body is required"}],
        )
    try:
        return schema.model_validate(payload)
    except pydantic.ValidationError as exc:
        details = [{"field": _field_name(err["loc"]), "message": err["msg"]} for err in exc.errors()]
        raise ValidationError("Validation failed", details=details) from None
