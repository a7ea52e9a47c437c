from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy.orm import selectinload

from models.topic import Topic
from schemas.inputs import TopicIn
from .base import BaseRepository


class TopicRepository(BaseRepository[Topic, TopicIn]):
    """Repository for Topic entities.

    A topic's parent may not be the topic itself or one of its descendants.
    """

    model = Topic
    schema = TopicIn
    entity_name = "topic"
    load_options = (selectinload(Topic.children),)

    async def _resolve(self, data: TopicIn, entity_id: Optional[int] = None) -> Dict[str, Any]:
        if entity_id is not None and data.parent_id == entity_id:
            self._raise_if([{"field": "parentId", "message": "a topic cannot be its own parent"}])
        self._raise_if([await self._require(Topic, data.parent_id, "parentId")])
        if entity_id is not None and await self._is_descendant(data.parent_id, entity_id):
            self._raise_if(
                [{"field": "parentId", "message": "a topic cannot be moved under its own descendant"}]
            )
        return {}

    async def _is_descendant(self, topic_id: Optional[int], ancestor_id: int) -> bool:
        """Walk up from ``topic_id``; True when the chain reaches ``ancestor_id``."""
        seen = set()
        while topic_id is not None and topic_id not in seen:
            if topic_id == ancestor_id:
                return True
            seen.add(topic_id)
            topic = await self.session.get(Topic, topic_id)
            topic_id = topic.parent_id if topic is not None else None
        return False
