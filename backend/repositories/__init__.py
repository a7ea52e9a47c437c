"""Entity stores: database access only (CRUD + relation-scoped queries).

Every repository takes an ``AsyncSession`` explicitly and never commits;
the request handler commits once the operation has succeeded.
"""

from .base import BaseRepository
from .event_repo import EventRepository
from .location_repo import LocationRepository
from .organization_repo import OrganizationRepository
from .person_repo import PersonRepository
from .room_repo import RoomRepository
from .talk_repo import TalkRepository
from .topic_repo import TopicRepository

__all__ = [
    "BaseRepository",
    "EventRepository",
    "LocationRepository",
    "OrganizationRepository",
    "PersonRepository",
    "RoomRepository",
    "TalkRepository",
    "TopicRepository",
]
