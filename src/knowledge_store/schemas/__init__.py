"""Pydantic schemas for knowledge-store."""

from knowledge_store.schemas.base import TagList, format_validation_error, invalid_input
from knowledge_store.schemas.item import ItemCreate, ItemResponse, OptimizeReport, StoreStats
from knowledge_store.schemas.search import SearchFilters

__all__ = [
    "ItemCreate",
    "ItemResponse",
    "OptimizeReport",
    "SearchFilters",
    "StoreStats",
    "TagList",
    "format_validation_error",
    "invalid_input",
]
