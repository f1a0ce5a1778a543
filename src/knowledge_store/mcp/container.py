"""Holds the open store for the lifetime of the MCP server.

The server lifespan sets the container on startup and clears it on shutdown.
Tools read it with get_container().
"""

from dataclasses import dataclass
from typing import Optional

from knowledge_store.config import KnowledgeStoreConfig
from knowledge_store.services.knowledge_store import KnowledgeStore


@dataclass
class McpContainer:
    config: KnowledgeStoreConfig
    store: KnowledgeStore


_container: Optional[McpContainer] = None


def get_container() -> McpContainer:
    """Return the active container.

    Raises:
        RuntimeError: If the server has not started or has already stopped
    """
    if _container is None:
        raise RuntimeError("MCP container is not initialized")
    return _container


def set_container(container: Optional[McpContainer]) -> None:
    global _container
    _container = container
