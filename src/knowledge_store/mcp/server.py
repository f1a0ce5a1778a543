"""MCP server instance and lifespan."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastmcp import FastMCP
from loguru import logger

from knowledge_store.config import ConfigManager
from knowledge_store.mcp.container import McpContainer, set_container
from knowledge_store.services.knowledge_store import KnowledgeStore


@asynccontextmanager
async def lifespan(app: FastMCP) -> AsyncIterator[None]:
    """Open the store when the server starts and close it when the server stops."""
    config = ConfigManager().config
    store = await KnowledgeStore.open(config)
    set_container(McpContainer(config=config, store=store))
    logger.info(f"MCP server started with store {store.handle.db_path}")
    try:
        yield
    finally:
        set_container(None)
        await store.close()
        logger.info("MCP server stopped")


mcp = FastMCP(
    name="knowledge-store",
    instructions=(
        "Store knowledge items (id, title, content, tags) and find them again with "
        "ranked full-text search. Queries support quoted phrases, AND/OR/NOT, "
        "parentheses and trailing * for prefix matches."
    ),
    lifespan=lifespan,
)
