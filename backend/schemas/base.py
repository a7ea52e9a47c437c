"""Shared pydantic configuration for request and response bodies.

JSON keys are camelCase on the wire; Python attributes stay snake_case.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class InputModel(BaseModel):
    """Base for request payloads. Unknown keys (including ``id``) are ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


class OutputModel(BaseModel):
    """Base for response bodies, read straight from ORM objects."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# Largest id a signed 64-bit INTEGER column can hold.
MAX_ID = 2**63 - 1


class Ref(InputModel):
    """Reference to an existing row by id, e.g. ``{"id": 3}``."""

    id: int = Field(..., gt=0, le=MAX_ID, description="Id of an existing row")


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Store wall-clock datetimes without tzinfo; aware inputs are shifted to UTC first."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
