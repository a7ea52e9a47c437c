"""Response schemas.

Nested shapes only reach relations the owning store eager-loads; the
``*Summary`` variants stop there so serialization never triggers a lazy load.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from models.talk import TalkLevel

from .base import OutputModel


class OrganizationOut(OutputModel):
    id: int
    name: str


class LocationOut(OutputModel):
    id: int
    name: str
    lat: float
    lon: float


class RoomSummary(OutputModel):
    id: int
    name: str
    location_id: int


class RoomOut(RoomSummary):
    location: LocationOut


class EventSummary(OutputModel):
    id: int
    name: str
    begin_date: date
    end_date: date
    location_id: int


class EventOut(EventSummary):
    location: LocationOut


class PersonOut(OutputModel):
    id: int
    name: str
    email: Optional[str] = None
    organization_id: Optional[int] = None
    organization: Optional[OrganizationOut] = None


class TopicSummary(OutputModel):
    id: int
    name: str
    parent_id: Optional[int] = None


class TopicOut(TopicSummary):
    children: List[TopicSummary] = []


class TalkDateOut(OutputModel):
    id: int
    begin_date: datetime
    end_date: datetime
    room_id: int
    event_id: int
    room: RoomSummary
    event: EventSummary


class TalkOut(OutputModel):
    id: int
    title: str
    duration_in_minutes: int
    language: str
    level: TalkLevel
    persons: List[PersonOut] = []
    topics: List[TopicOut] = []
    talk_dates: List[TalkDateOut] = []
