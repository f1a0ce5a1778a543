"""Helpers shared by CLI commands."""

import asyncio
from typing import Awaitable, Callable, TypeVar

from knowledge_store.config import ConfigManager
from knowledge_store.mcp.container import McpContainer, set_container
from knowledge_store.services.knowledge_store import KnowledgeStore

T = TypeVar("T")


def run_with_store(func: Callable[[], Awaitable[T]]) -> T:
    """Open the store, run ``func`` with the tool container set, then close the store.

    Tools read the store from the container, so CLI commands can call them
    exactly as the MCP server does.
    """

    async def _run() -> T:
        config = ConfigManager().config
        store = await KnowledgeStore.open(config)
        set_container(McpContainer(config=config, store=store))
        try:
            return await func()
        finally:
            set_container(None)
            await store.close()

    return asyncio.run(_run())
