from __future__ import annotations

import logging
from contextlib import contextmanager
from enum import Enum
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    Generic,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
)

from pydantic import BaseModel
from sqlalchemy import ColumnElement, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import (
    AppError,
    ConflictError,
    NotFoundError,
    UnexpectedError,
    ValidationFailedError,
)
from models.base import Base
from schemas.validation import validate

T = TypeVar("T", bound=Base)
S = TypeVar("S", bound=BaseModel)

RelatedFilter = Callable[[int], ColumnElement[bool]]

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T, S]):
    """Generic entity store: CRUD plus relation-scoped queries.

    Subclasses declare the model, the input schema, the relations to
    eager-load and the relation filters used by ``list_by_related``.
    Storage errors are classified here; callers only ever see ``AppError``.

    No commits are performed here - commit responsibility is left to the
    caller.
    """

    model: ClassVar[Type[Any]]
    schema: ClassVar[Type[BaseModel]]
    entity_name: ClassVar[str] = "entity"
    load_options: ClassVar[Tuple[Any, ...]] = ()
    related_filters: ClassVar[Mapping[str, RelatedFilter]] = {}

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with an async session."""
        self.session = session

    @contextmanager
    def _classified(self, action: str) -> Iterator[None]:
        try:
            yield
        except AppError:
            raise
        except IntegrityError as exc:
            logger.warning("Integrity error while trying to %s %s: %s", action, self.entity_name, exc.orig)
            message = (
                f"{self.entity_name} is referenced by other rows"
                if action == "delete"
                else f"cannot {action} {self.entity_name}: constraint violated"
            )
            raise ConflictError(message, cause=exc) from exc
        except SQLAlchemyError as exc:
            logger.error("Unexpected error while trying to %s %s", action, self.entity_name, exc_info=exc)
            raise UnexpectedError(f"failed to {action} {self.entity_name}", cause=exc) from exc

    def _select(self):
        return (
            select(self.model)
            .options(*self.load_options)
            .execution_options(populate_existing=True)
            .order_by(self.model.id)
        )

    async def _fetch(self, entity_id: int) -> T:
        result = await self.session.execute(self._select().where(self.model.id == entity_id))
        entity = result.scalar_one_or_none()
        if entity is None:
            logger.warning("%s not found by id %s", self.entity_name, entity_id)
            raise NotFoundError(self.entity_name, entity_id)
        return entity

    async def list(self) -> List[T]:
        """Return all rows with declared relations loaded."""
        logger.debug("Getting all %s rows...", self.entity_name)
        with self._classified("list"):
            result = await self.session.execute(self._select())
            return list(result.scalars().all())

    async def get_by_id(self, entity_id: int) -> T:
        """Return one row or raise NotFoundError."""
        logger.debug("Getting %s by id %s...", self.entity_name, entity_id)
        with self._classified("get"):
            return await self._fetch(entity_id)

    async def create(self, payload: Mapping[str, Any]) -> T:
        """Validate, insert and return the row as re-read from storage."""
        logger.debug("Adding %s...", self.entity_name)
        data = validate(self.schema, payload)
        with self._classified("create"):
            values = await self._resolve(data)
            entity = self.model()
            self._assign(entity, data, values)
            self.session.add(entity)
            await self.session.flush()
            logger.debug("Added %s with id %s", self.entity_name, entity.id)
            return await self._fetch(entity.id)

    async def update(self, entity_id: int, payload: Mapping[str, Any]) -> T:
        """Replace every mutable field of an existing row.

        The id must exist before the payload is even looked at; a missing id
        is reported as NotFoundError rather than a validation failure.
        """
        logger.debug("Updating %s %s...", self.entity_name, entity_id)
        with self._classified("update"):
            entity = await self._fetch(entity_id)
        data = validate(self.schema, payload)
        with self._classified("update"):
            values = await self._resolve(data, entity_id=entity_id)
            self._assign(entity, data, values)
            await self.session.flush()
            logger.debug("Updated %s %s", self.entity_name, entity_id)
            return await self._fetch(entity_id)

    async def delete(self, entity_id: int) -> None:
        """Hard-delete a row. Foreign keys decide what else goes with it."""
        logger.debug("Deleting %s %s...", self.entity_name, entity_id)
        with self._classified("delete"):
            entity = await self._fetch(entity_id)
            await self.session.delete(entity)
            await self.session.flush()
        logger.debug("Deleted %s %s", self.entity_name, entity_id)

    async def list_by_related(self, kind: str, related_id: int) -> List[T]:
        """Return rows linked to ``related_id`` through the ``kind`` relation."""
        try:
            condition = self.related_filters[kind]
        except KeyError:
            raise ValueError(f"{self.entity_name} has no relation {kind!r}") from None
        logger.debug("Getting %s rows by %s id %s...", self.entity_name, kind, related_id)
        with self._classified("list"):
            result = await self.session.execute(self._select().where(condition(related_id)))
            return list(result.scalars().all())

    async def _resolve(self, data: S, entity_id: Optional[int] = None) -> Dict[str, Any]:
        """Load rows the payload refers to. Subclasses with relations override this."""
        return {}

    def _assign(self, entity: T, data: S, values: Mapping[str, Any]) -> None:
        """Copy validated fields onto ``entity``; resolved relations come from ``values``."""
        for name in type(data).model_fields:
            if name in values:
                continue
            value = getattr(data, name)
            setattr(entity, name, value.value if isinstance(value, Enum) else value)
        for name, value in values.items():
            setattr(entity, name, value)

    async def _require(self, model: Type[Base], ref_id: Optional[int], field: str) -> Optional[Dict[str, Any]]:
        """Return a violation dict when ``ref_id`` does not name an existing row."""
        if ref_id is None:
            return None
        if await self.session.get(model, ref_id) is None:
            return {"field": field, "message": f"no {model.__tablename__} row with id {ref_id}"}
        return None

    async def _require_all(
        self, model: Type[Base], ids: Sequence[int], field: str
    ) -> Tuple[List[Any], List[Dict[str, Any]]]:
        """Load every referenced row; report the positions that do not resolve."""
        rows: Dict[int, Any] = {}
        if ids:
            result = await self.session.execute(select(model).where(model.id.in_(set(ids))))
            rows = {row.id: row for row in result.scalars().all()}
        problems = [
            {"field": f"{field}.{index}.id", "message": f"no {model.__tablename__} row with id {ref_id}"}
            for index, ref_id in enumerate(ids)
            if ref_id not in rows
        ]
        ordered: List[Any] = []
        for ref_id in dict.fromkeys(ids):
            if ref_id in rows:
                ordered.append(rows[ref_id])
        return ordered, problems

    @staticmethod
    def _raise_if(problems: Sequence[Optional[Dict[str, Any]]]) -> None:
        found = [p for p in problems if p]
        if found:
            raise ValidationFailedError(found)
