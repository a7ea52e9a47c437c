"""Pydantic request/response schemas and payload validation."""

from .base import InputModel, OutputModel, Ref
from .inputs import (
    EventIn,
    LocationIn,
    OrganizationIn,
    PersonIn,
    RoomIn,
    TalkDateIn,
    TalkIn,
    TopicIn,
)
from .outputs import (
    EventOut,
    EventSummary,
    LocationOut,
    OrganizationOut,
    PersonOut,
    RoomOut,
    RoomSummary,
    TalkDateOut,
    TalkOut,
    TopicOut,
    TopicSummary,
)
from .validation import validate, violations_from

__all__ = [
    "InputModel",
    "OutputModel",
    "Ref",
    "EventIn",
    "LocationIn",
    "OrganizationIn",
    "PersonIn",
    "RoomIn",
    "TalkDateIn",
    "TalkIn",
    "TopicIn",
    "EventOut",
    "EventSummary",
    "LocationOut",
    "OrganizationOut",
    "PersonOut",
    "RoomOut",
    "RoomSummary",
    "TalkDateOut",
    "TalkOut",
    "TopicOut",
    "TopicSummary",
    "validate",
    "violations_from",
]
