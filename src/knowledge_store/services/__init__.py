"""Services layer."""

from knowledge_store.services.exceptions import (
    InvalidInputError,
    KnowledgeStoreError,
    QuerySyntaxError,
    StorageUnavailableError,
    StoreClosedError,
)

__all__ = [
    "InvalidInputError",
    "KnowledgeStoreError",
    "QuerySyntaxError",
    "StorageUnavailableError",
    "StoreClosedError",
]
