"""Exceptions raised by the knowledge store."""


class KnowledgeStoreError(Exception):
    """Base class for every error raised by the store."""


class InvalidInputError(KnowledgeStoreError):
    """Raised when arguments fail validation. Storage is not touched."""


class QuerySyntaxError(KnowledgeStoreError):
    """Raised when a full-text query cannot be parsed."""

    def __init__(self, query: str, message: str | None = None):
        self.query = query
        super().__init__(message or f"Invalid search query: {query}")


class StorageUnavailableError(KnowledgeStoreError):
    """Raised when the store file cannot be read or written."""


class StoreClosedError(StorageUnavailableError):
    """Raised when an operation is attempted on a closed store."""
