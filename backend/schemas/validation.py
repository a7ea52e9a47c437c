"""Payload validation: pydantic errors become one ValidationFailedError."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Type, TypeVar

from pydantic import BaseModel, ValidationError

from core.errors import ValidationFailedError

M = TypeVar("M", bound=BaseModel)


def _field_path(loc: tuple) -> str:
    return ".".join(str(part) for part in loc)


def violations_from(exc: ValidationError) -> List[Dict[str, Any]]:
    """Flatten pydantic errors into ``{"field", "message"}`` dicts, one per violation."""
    return [
        {"field": _field_path(err["loc"]), "message": err["msg"]}
        for err in exc.errors(include_url=False)
    ]


def validate(schema: Type[M], payload: Mapping[str, Any]) -> M:
    """Validate ``payload`` against ``schema``.

    Raises:
        ValidationFailedError: listing every violated constraint, not just the first.
    """
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailedError(violations_from(exc), cause=exc) from exc
