from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .event import Event
from .person import Person
from .room import Room
from .topic import Topic


class TalkLevel(str, Enum):
    BEGINNER = "beginner"
    ADVANCED = "advanced"
    EXPERT = "expert"


# Junction rows disappear with either side of the relation.
talks_at = Table(
    "talks_at",
    Base.metadata,
    Column("talk_id", ForeignKey("talks.id", ondelete="CASCADE"), primary_key=True),
    Column("person_id", ForeignKey("persons.id", ondelete="CASCADE"), primary_key=True),
)

talk_topic = Table(
    "talk_topic",
    Base.metadata,
    Column("talk_id", ForeignKey("talks.id", ondelete="CASCADE"), primary_key=True),
    Column("topic_id", ForeignKey("topics.id", ondelete="CASCADE"), primary_key=True),
)


class Talk(Base):
    """A talk given by one or more persons, scheduled through talk dates."""

    __tablename__ = "talks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    duration_in_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    language: Mapped[str] = mapped_column(String(64), nullable=False)
    level: Mapped[str] = mapped_column(String(16), nullable=False)

    persons: Mapped[List[Person]] = relationship(
        secondary=talks_at, order_by="Person.id"
    )
    topics: Mapped[List[Topic]] = relationship(
        secondary=talk_topic, order_by="Topic.id"
    )
    talk_dates: Mapped[List["TalkDate"]] = relationship(
        back_populates="talk",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TalkDate.id",
    )


class TalkDate(Base):
    """One scheduled slot of a talk: a room at an event, between two instants.

    Owned by its talk. Rooms and events referenced here cannot be deleted.
    """

    __tablename__ = "talk_dates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    talk_id: Mapped[int] = mapped_column(
        ForeignKey("talks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    room_id: Mapped[int] = mapped_column(ForeignKey("rooms.id"), nullable=False, index=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id"), nullable=False, index=True)
    begin_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    talk: Mapped[Talk] = relationship(back_populates="talk_dates")
    room: Mapped[Room] = relationship()
    event: Mapped[Event] = relationship()
