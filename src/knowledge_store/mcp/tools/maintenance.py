"""Maintenance tool for the knowledge-store MCP server."""

from typing import Literal

from loguru import logger

from knowledge_store.mcp.container import get_container
from knowledge_store.mcp.server import mcp
from knowledge_store.mcp.tools.errors import tool_errors


@mcp.tool(
    description="Optimize the store: checkpoint, refresh statistics and compact the search index.",
    annotations={"destructiveHint": False, "idempotentHint": True, "openWorldHint": False},
)
async def optimize_db(output_format: Literal["text", "json"] = "text") -> str | dict:
    """Checkpoint the write-ahead log, refresh statistics and compact the search index."""
    logger.info("MCP tool call tool=optimize_db")
    with tool_errors("optimize_db"):
        report = await get_container().store.optimize()

    if output_format == "json":
        return report.model_dump(mode="json")
    return "Database optimization completed"
