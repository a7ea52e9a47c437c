from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy.orm import selectinload

from models.event import Event
from models.location import Location
from schemas.inputs import EventIn
from .base import BaseRepository


class EventRepository(BaseRepository[Event, EventIn]):
    """Repository for Event entities."""

    model = Event
    schema = EventIn
    entity_name = "event"
    load_options = (selectinload(Event.location),)
    related_filters = {
        "location": lambda location_id: Event.location_id == location_id,
    }

    async def _resolve(self, data: EventIn, entity_id: Optional[int] = None) -> Dict[str, Any]:
        self._raise_if([await self._require(Location, data.location_id, "locationId")])
        return {}
