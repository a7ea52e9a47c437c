"""HTTP routes: entity CRUD routers, system endpoints and error handlers."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter

from repositories import (
    EventRepository,
    LocationRepository,
    OrganizationRepository,
    PersonRepository,
    RoomRepository,
    TalkRepository,
    TopicRepository,
)
from schemas import EventOut, LocationOut, OrganizationOut, PersonOut, RoomOut, TalkOut, TopicOut

from .entities import EntityRoutes, build_entity_router
from .errors import register_exception_handlers
from .system import router as system_router

ENTITY_ROUTES = (
    EntityRoutes("locations", LocationRepository, LocationOut),
    EntityRoutes("rooms", RoomRepository, RoomOut, {"locations": "location"}),
    EntityRoutes("events", EventRepository, EventOut, {"locations": "location"}),
    EntityRoutes("organizations", OrganizationRepository, OrganizationOut),
    EntityRoutes("persons", PersonRepository, PersonOut, {"organizations": "organization"}),
    EntityRoutes("topics", TopicRepository, TopicOut),
    EntityRoutes(
        "talks",
        TalkRepository,
        TalkOut,
        {"events": "event", "persons": "person", "topics": "topic"},
    ),
)

# Reachable without a token unless AUTH_PROTECT_ALL_ROUTES is set.
OPEN_BY_ID_ROUTES = tuple(
    f"{method} /{spec.path}/{{id}}" for spec in ENTITY_ROUTES for method in ("GET", "DELETE")
)


def build_entity_routers(protect_all_routes: bool = False) -> List[APIRouter]:
    return [build_entity_router(spec, protect_all_routes) for spec in ENTITY_ROUTES]


__all__ = [
    "ENTITY_ROUTES",
    "OPEN_BY_ID_ROUTES",
    "EntityRoutes",
    "build_entity_router",
    "build_entity_routers",
    "register_exception_handlers",
    "system_router",
]
