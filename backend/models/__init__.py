"""SQLAlchemy models for the PAC backend.

Importing this package registers every table with ``Base.metadata``.
"""

from .base import Base
from .event import Event
from .location import Location
from .organization import Organization
from .person import Person
from .room import Room
from .talk import Talk, TalkDate, TalkLevel, talk_topic, talks_at
from .topic import Topic

__all__ = [
    "Base",
    "Event",
    "Location",
    "Organization",
    "Person",
    "Room",
    "Talk",
    "TalkDate",
    "TalkLevel",
    "Topic",
    "talk_topic",
    "talks_at",
]
