"""Search tools for the knowledge-store MCP server."""

from typing import List, Literal

from loguru import logger

from knowledge_store.mcp.container import get_container
from knowledge_store.mcp.server import mcp
from knowledge_store.mcp.tools.errors import tool_errors
from knowledge_store.mcp.tools.formatting import format_search_results
from knowledge_store.schemas import ItemResponse


def _json_results(query: str, items: List[ItemResponse]) -> dict:
    return {
        "query": query,
        "count": len(items),
        "results": [item.model_dump(mode="json") for item in items],
    }


@mcp.tool(
    description="Search knowledge items. Supports quoted phrases, AND, OR, NOT, "
    "parentheses and trailing * for prefix matches. Results are ranked by relevance.",
    annotations={"readOnlyHint": True, "openWorldHint": False},
)
async def search_items(
    query: str,
    limit: int | None = None,
    quiet: bool = False,
    output_format: Literal["text", "json"] = "text",
) -> str | dict:
    """Ranked full-text search over titles, content and tags."""
    logger.info(f"MCP tool call tool=search_items query={query!r} limit={limit}")
    with tool_errors("search_items"):
        items = await get_container().store.search(query, limit=limit)

    if output_format == "json":
        return _json_results(query, items)
    if not items:
        return "✓ 0 results" if quiet else f'No items found matching query: "{query}"'
    if quiet:
        return f"✓ Found {len(items)} entries"
    return f'Found {len(items)} item(s) matching "{query}":\n\n{format_search_results(items)}'


@mcp.tool(
    description="Search knowledge items filtered by tags (any of) and an updated-at date range.",
    annotations={"readOnlyHint": True, "openWorldHint": False},
)
async def search_advanced(
    query: str,
    limit: int | None = None,
    tags: list[str] | str | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    quiet: bool = False,
    output_format: Literal["text", "json"] = "text",
) -> str | dict:
    """Ranked search filtered by tags and an updated-at date range.

    Dates accept ISO-8601 or phrases such as "2 days ago".
    """
    logger.info(
        f"MCP tool call tool=search_advanced query={query!r} tags={tags} "
        f"date_from={date_from} date_to={date_to}"
    )
    with tool_errors("search_advanced"):
        items = await get_container().store.search_advanced(
            query, limit=limit, tags=tags, date_from=date_from, date_to=date_to
        )

    if output_format == "json":
        return _json_results(query, items)
    if not items:
        return "✓ 0 results" if quiet else f'No items found matching advanced query: "{query}"'
    if quiet:
        return f"✓ Found {len(items)} entries"
    return f"Advanced search found {len(items)} item(s):\n\n{format_search_results(items)}"
