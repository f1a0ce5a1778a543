"""Models package for knowledge-store."""

from knowledge_store.models.base import Base, UtcDateTime
from knowledge_store.models.item import Item
from knowledge_store.models.search import CREATE_SEARCH_INDEX

__all__ = [
    "Base",
    "CREATE_SEARCH_INDEX",
    "Item",
    "UtcDateTime",
]
