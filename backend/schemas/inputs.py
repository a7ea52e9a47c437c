"""Request payload schemas: the per-field constraint tables for every entity.

Each store validates its payload against one of these before touching the
database, so a rejected payload never causes a write.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import Field, ValidationInfo, field_validator

from models.talk import TalkLevel

from .base import MAX_ID, InputModel, Ref, to_naive_utc

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
# Fits the 32-bit INTEGER column on MySQL.
MAX_MINUTES = 2**31 - 1


class OrganizationIn(InputModel):
    name: str = Field(..., min_length=1, max_length=255)


class LocationIn(InputModel):
    name: str = Field(..., min_length=1, max_length=255)
    lat: float = Field(..., ge=-90, le=90, description="Latitude in degrees")
    lon: float = Field(..., ge=-180, le=180, description="Longitude in degrees")


class RoomIn(InputModel):
    name: str = Field(..., min_length=1, max_length=255)
    location_id: int = Field(..., gt=0, le=MAX_ID)


class EventIn(InputModel):
    name: str = Field(..., min_length=1, max_length=255)
    begin_date: date
    end_date: date
    location_id: int = Field(..., gt=0, le=MAX_ID)

    @field_validator("end_date")
    @classmethod
    def _end_not_before_begin(cls, value: date, info: ValidationInfo) -> date:
        begin = info.data.get("begin_date")
        if begin is not None and value < begin:
            raise ValueError("endDate must not be before beginDate")
        return value


class PersonIn(InputModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[str] = Field(None, max_length=255, pattern=EMAIL_PATTERN)
    organization_id: Optional[int] = Field(None, gt=0, le=MAX_ID)


class TopicIn(InputModel):
    name: str = Field(..., min_length=1, max_length=255)
    parent_id: Optional[int] = Field(None, gt=0, le=MAX_ID)


class TalkDateIn(InputModel):
    begin_date: datetime
    end_date: datetime
    room_id: int = Field(..., gt=0, le=MAX_ID)
    event_id: int = Field(..., gt=0, le=MAX_ID)

    @field_validator("begin_date", "end_date")
    @classmethod
    def _naive(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    @field_validator("end_date")
    @classmethod
    def _end_not_before_begin(cls, value: datetime, info: ValidationInfo) -> datetime:
        begin = info.data.get("begin_date")
        if begin is not None and value < begin:
            raise ValueError("endDate must not be before beginDate")
        return value


class TalkIn(InputModel):
    title: str = Field(..., min_length=1, max_length=255)
    duration_in_minutes: int = Field(..., gt=0, le=MAX_MINUTES)
    language: str = Field(..., min_length=1, max_length=64)
    level: TalkLevel
    persons: List[Ref] = Field(default_factory=list)
    topics: List[Ref] = Field(default_factory=list)
    talk_dates: List[TalkDateIn] = Field(default_factory=list)
