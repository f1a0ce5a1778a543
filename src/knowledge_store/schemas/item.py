"""Request and response models for knowledge items."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from knowledge_store.schemas.base import ItemId, TagList, Title


class ItemCreate(BaseModel):
    """An item to store. Tags are normalized on validation."""

    model_config = ConfigDict(extra="forbid")

    id: ItemId
    title: Title
    content: str
    tags: TagList = Field(default_factory=list)


class ItemResponse(BaseModel):
    """A stored item as returned to callers.

    ``score`` is only set on search results and holds the bm25 rank
    (lower is more relevant).
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    content: str
    tags: List[str]
    created_at: datetime
    updated_at: datetime
    score: Optional[float] = None


class StoreStats(BaseModel):
    """Aggregate counts for the store. Not a point-in-time snapshot."""

    item_count: int
    tag_count: int
    size_on_disk: int


class OptimizeReport(BaseModel):
    size_before: int
    size_after: int

    @computed_field
    @property
    def reclaimed_bytes(self) -> int:
        return max(self.size_before - self.size_after, 0)
