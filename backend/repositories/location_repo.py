from __future__ import annotations

from models.location import Location
from schemas.inputs import LocationIn
from .base import BaseRepository


class LocationRepository(BaseRepository[Location, LocationIn]):
    """Repository for Location entities."""

    model = Location
    schema = LocationIn
    entity_name = "location"
