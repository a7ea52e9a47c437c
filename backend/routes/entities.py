"""CRUD routes shared by every entity kind.

``build_entity_router`` turns one ``EntityRoutes`` declaration into the
list / get / create / update / delete routes plus the relation-scoped list
routes (e.g. ``GET /events/{id}/talks``).
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Type

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from auth import require_bearer_token, require_json_content_type
from core.dependencies import get_db_session
from core.errors import BadRequestError, UnexpectedError
from repositories.base import BaseRepository
from schemas.base import MAX_ID, OutputModel

_ID_PATTERN = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class EntityRoutes:
    """Declares the routes of one entity kind.

    ``relations`` maps a parent path segment to the repository relation kind,
    e.g. ``{"events": "event"}`` adds ``GET /events/{id}/talks``.
    """

    path: str
    repository: Type[BaseRepository]
    output: Type[OutputModel]
    relations: Mapping[str, str] = field(default_factory=dict)


def parse_id(raw: str) -> int:
    """Parse a path id; anything but a non-negative 64-bit integer is a bad request."""
    if not _ID_PATTERN.fullmatch(raw):
        raise BadRequestError(f"invalid id {raw!r}")
    value = int(raw)
    if value > MAX_ID:
        raise BadRequestError(f"invalid id {raw!r}")
    return value


async def read_json_object(request: Request) -> Dict[str, Any]:
    """Decode the request body, which must be a JSON object."""
    body = await request.body()
    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise BadRequestError("request body is not valid JSON", cause=exc) from exc
    if not isinstance(payload, dict):
        raise BadRequestError("request body must be a JSON object")
    return payload


async def commit(session: AsyncSession) -> None:
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        raise UnexpectedError("failed to commit transaction", cause=exc) from exc


def build_entity_router(spec: EntityRoutes, protect_all_routes: bool = False) -> APIRouter:
    """Create the router for one entity kind.

    List, create, update and relation lists require a bearer token. Get-by-id
    and delete only do when ``protect_all_routes`` is set.
    """
    router = APIRouter(tags=[spec.path])
    collection = f"/{spec.path}"
    item = f"/{spec.path}/{{entity_id}}"

    bearer = [Depends(require_bearer_token)]
    json_and_bearer = [Depends(require_json_content_type), Depends(require_bearer_token)]
    by_id = bearer if protect_all_routes else []

    def serialize(entity: Any) -> Dict[str, Any]:
        return spec.output.model_validate(entity).model_dump(mode="json", by_alias=True)

    @router.get(collection, dependencies=bearer)
    async def list_entities(session: AsyncSession = Depends(get_db_session)) -> List[Dict[str, Any]]:
        rows = await spec.repository(session).list()
        return [serialize(row) for row in rows]

    @router.get(item, dependencies=by_id)
    async def get_entity(entity_id: str, session: AsyncSession = Depends(get_db_session)) -> Dict[str, Any]:
        entity = await spec.repository(session).get_by_id(parse_id(entity_id))
        return serialize(entity)

    @router.post(collection, status_code=201, dependencies=json_and_bearer)
    async def create_entity(
        request: Request, session: AsyncSession = Depends(get_db_session)
    ) -> Dict[str, Any]:
        payload = await read_json_object(request)
        entity = await spec.repository(session).create(payload)
        await commit(session)
        return serialize(entity)

    @router.put(item, dependencies=json_and_bearer)
    async def update_entity(
        entity_id: str, request: Request, session: AsyncSession = Depends(get_db_session)
    ) -> Dict[str, Any]:
        target = parse_id(entity_id)
        payload = await read_json_object(request)
        entity = await spec.repository(session).update(target, payload)
        await commit(session)
        return serialize(entity)

    @router.delete(item, status_code=204, dependencies=by_id)
    async def delete_entity(entity_id: str, session: AsyncSession = Depends(get_db_session)) -> Response:
        await spec.repository(session).delete(parse_id(entity_id))
        await commit(session)
        return Response(status_code=204)

    for parent, kind in spec.relations.items():
        _add_relation_route(router, spec, parent, kind, serialize)

    return router


def _add_relation_route(router: APIRouter, spec: EntityRoutes, parent: str, kind: str, serialize) -> None:
    async def list_related(entity_id: str, session: AsyncSession = Depends(get_db_session)) -> List[Dict[str, Any]]:
        rows = await spec.repository(session).list_by_related(kind, parse_id(entity_id))
        return [serialize(row) for row in rows]

    router.add_api_route(
        f"/{parent}/{{entity_id}}/{spec.path}",
        list_related,
        methods=["GET"],
        dependencies=[Depends(require_bearer_token)],
        name=f"list_{spec.path}_by_{kind}",
    )
