from __future__ import annotations

from typing import List, Optional

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class Topic(Base):
    """Talk topic. Topics form a tree through ``parent_id``."""

    __tablename__ = "topics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("topics.id", ondelete="SET NULL"), nullable=True, index=True
    )

    parent: Mapped[Optional["Topic"]] = relationship(
        back_populates="children", remote_side="Topic.id"
    )
    children: Mapped[List["Topic"]] = relationship(
        back_populates="parent", passive_deletes=True, order_by="Topic.id"
    )
