from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from models.event import Event
from models.person import Person
from models.room import Room
from models.talk import Talk, TalkDate
from models.topic import Topic
from schemas.inputs import TalkIn
from .base import BaseRepository


class TalkRepository(BaseRepository[Talk, TalkIn]):
    """Repository for Talk entities.

    Persons and topics are referenced by id and never modified through a
    talk. Talk dates are owned: an update replaces the whole list.
    """

    model = Talk
    schema = TalkIn
    entity_name = "talk"
    load_options = (
        selectinload(Talk.persons).selectinload(Person.organization),
        selectinload(Talk.topics).selectinload(Topic.children),
        selectinload(Talk.talk_dates).selectinload(TalkDate.room),
        selectinload(Talk.talk_dates).selectinload(TalkDate.event),
    )
    related_filters = {
        "event": lambda event_id: Talk.id.in_(
            select(TalkDate.talk_id).where(TalkDate.event_id == event_id)
        ),
        "person": lambda person_id: Talk.persons.any(Person.id == person_id),
        "topic": lambda topic_id: Talk.topics.any(Topic.id == topic_id),
    }

    async def _resolve(self, data: TalkIn, entity_id: Optional[int] = None) -> Dict[str, Any]:
        persons, problems = await self._require_all(
            Person, [ref.id for ref in data.persons], "persons"
        )
        topics, topic_problems = await self._require_all(
            Topic, [ref.id for ref in data.topics], "topics"
        )
        problems.extend(topic_problems)

        talk_dates: List[TalkDate] = []
        for index, slot in enumerate(data.talk_dates):
            problems.append(await self._require(Room, slot.room_id, f"talkDates.{index}.roomId"))
            problems.append(await self._require(Event, slot.event_id, f"talkDates.{index}.eventId"))
            talk_dates.append(
                TalkDate(
                    room_id=slot.room_id,
                    event_id=slot.event_id,
                    begin_date=slot.begin_date,
                    end_date=slot.end_date,
                )
            )
        self._raise_if(problems)

        return {"persons": persons, "topics": topics, "talk_dates": talk_dates}
