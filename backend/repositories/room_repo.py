from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy.orm import selectinload

from models.location import Location
from models.room import Room
from schemas.inputs import RoomIn
from .base import BaseRepository


class RoomRepository(BaseRepository[Room, RoomIn]):
    """Repository for Room entities."""

    model = Room
    schema = RoomIn
    entity_name = "room"
    load_options = (selectinload(Room.location),)
    related_filters = {
        "location": lambda location_id: Room.location_id == location_id,
    }

    async def _resolve(self, data: RoomIn, entity_id: Optional[int] = None) -> Dict[str, Any]:
        self._raise_if([await self._require(Location, data.location_id, "locationId")])
        return {}
