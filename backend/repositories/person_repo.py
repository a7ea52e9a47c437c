from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy.orm import selectinload

from models.organization import Organization
from models.person import Person
from schemas.inputs import PersonIn
from .base import BaseRepository


class PersonRepository(BaseRepository[Person, PersonIn]):
    """Repository for Person entities."""

    model = Person
    schema = PersonIn
    entity_name = "person"
    load_options = (selectinload(Person.organization),)
    related_filters = {
        "organization": lambda organization_id: Person.organization_id == organization_id,
    }

    async def _resolve(self, data: PersonIn, entity_id: Optional[int] = None) -> Dict[str, Any]:
        self._raise_if(
            [await self._require(Organization, data.organization_id, "organizationId")]
        )
        return {}
