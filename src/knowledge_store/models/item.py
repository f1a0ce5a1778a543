"""Knowledge item model."""

from datetime import datetime
from typing import List

from sqlalchemy import JSON, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from knowledge_store.models.base import Base, UtcDateTime
from knowledge_store.utils import utc_now


class Item(Base):
    """A stored knowledge item.

    Items are keyed by a caller-supplied id. Tags are kept as a sorted JSON
    array so they can be filtered with json_each().
    """

    __tablename__ = "item"
    __table_args__ = (Index("ix_item_updated_at", "updated_at"),)

    id: Mapped[str] = mapped_column(String, primary_key=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(UtcDateTime, nullable=False, default=utc_now)

    def __repr__(self) -> str:
        return f"Item(id={self.id!r}, title={self.title!r}, tags={self.tags!r})"
