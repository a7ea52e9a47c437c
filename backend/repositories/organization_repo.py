from __future__ import annotations

from models.organization import Organization
from schemas.inputs import OrganizationIn
from .base import BaseRepository


class OrganizationRepository(BaseRepository[Organization, OrganizationIn]):
    """Repository for Organization entities."""

    model = Organization
    schema = OrganizationIn
    entity_name = "organization"
