"""Item tools: store, fetch, list and delete knowledge items."""

from typing import Any, Literal

from loguru import logger

from knowledge_store.mcp.container import get_container
from knowledge_store.mcp.server import mcp
from knowledge_store.mcp.tools.errors import tool_errors
from knowledge_store.mcp.tools.formatting import format_item, format_listing

OutputFormat = Literal["text", "json"]


@mcp.tool(
    description="Store a knowledge item with id, title, content and optional tags. "
    "Storing an existing id replaces it and keeps its creation time.",
    annotations={"destructiveHint": False, "idempotentHint": True, "openWorldHint": False},
)
async def store_item(
    id: str,
    title: str,
    content: str,
    tags: list[str] | str | None = None,
    quiet: bool = False,
    output_format: OutputFormat = "text",
) -> str | dict:
    """Store an item, replacing any item already stored under the same id."""
    logger.info(f"MCP tool call tool=store_item id={id}")
    with tool_errors("store_item"):
        item = await get_container().store.store(id, title, content, tags)

    if output_format == "json":
        return item.model_dump(mode="json")
    if quiet:
        return "✓ Stored"
    return f'Successfully stored item "{item.title}" with ID: {item.id}'


@mcp.tool(
    description="Store many items at once. Either every item is stored or none is.",
    annotations={"destructiveHint": False, "idempotentHint": True, "openWorldHint": False},
)
async def store_batch(
    items: list[dict[str, Any]],
    quiet: bool = False,
    output_format: OutputFormat = "text",
) -> str | dict:
    """Store several items in one transaction. One invalid item rejects the batch."""
    logger.info(f"MCP tool call tool=store_batch count={len(items)}")
    with tool_errors("store_batch"):
        stored = await get_container().store.store_batch(items)

    if output_format == "json":
        return {"count": len(stored), "items": [item.model_dump(mode="json") for item in stored]}
    if quiet:
        return f"✓ Saved {len(stored)} entries"
    return f"Successfully stored {len(stored)} items in batch"


@mcp.tool(
    description="Retrieve a knowledge item by its id.",
    annotations={"readOnlyHint": True, "openWorldHint": False},
)
async def retrieve_item(id: str, output_format: OutputFormat = "text") -> str | dict:
    """Fetch one item by id."""
    logger.info(f"MCP tool call tool=retrieve_item id={id}")
    with tool_errors("retrieve_item"):
        item = await get_container().store.retrieve(id)

    if output_format == "json":
        if item is None:
            return {"id": id, "found": False}
        return {"found": True, **item.model_dump(mode="json")}
    if item is None:
        return f'Item with ID "{id}" not found'
    return format_item(item)


@mcp.tool(
    description="List knowledge items, most recently updated first, with limit and offset.",
    annotations={"readOnlyHint": True, "openWorldHint": False},
)
async def list_items(
    limit: int | None = None,
    offset: int = 0,
    output_format: OutputFormat = "text",
) -> str | dict:
    """List items, most recently updated first."""
    logger.info(f"MCP tool call tool=list_items limit={limit} offset={offset}")
    with tool_errors("list_items"):
        items = await get_container().store.list(limit=limit, offset=offset)

    if output_format == "json":
        return {
            "count": len(items),
            "offset": offset,
            "items": [item.model_dump(mode="json") for item in items],
        }
    if not items:
        return "No items found"
    return f"Listing {len(items)} item(s):\n\n{format_listing(items)}"


@mcp.tool(
    description="Delete a knowledge item by its id.",
    annotations={"destructiveHint": True, "idempotentHint": True, "openWorldHint": False},
)
async def delete_item(id: str, output_format: OutputFormat = "text") -> str | dict:
    """Delete an item and its search entry."""
    logger.info(f"MCP tool call tool=delete_item id={id}")
    with tool_errors("delete_item"):
        deleted = await get_container().store.delete(id)

    if output_format == "json":
        return {"id": id, "deleted": deleted}
    if deleted:
        return f"Successfully deleted item with ID: {id}"
    return f'Item with ID "{id}" not found'


@mcp.tool(
    description="List every tag in use.",
    annotations={"readOnlyHint": True, "openWorldHint": False},
)
async def get_tags(output_format: OutputFormat = "text") -> str | dict:
    """Every tag in use, sorted."""
    with tool_errors("get_tags"):
        tags = await get_container().store.get_tags()

    if output_format == "json":
        return {"tags": tags}
    if not tags:
        return "No tags found"
    return f"{len(tags)} tag(s): {', '.join(tags)}"


@mcp.tool(
    description="Show item count, tag count and store size.",
    annotations={"readOnlyHint": True, "openWorldHint": False},
)
async def get_stats(output_format: OutputFormat = "text") -> str | dict:
    """Item count, distinct tag count and bytes on disk."""
    with tool_errors("get_stats"):
        stats = await get_container().store.get_stats()

    if output_format == "json":
        return stats.model_dump(mode="json")
    return (
        f"Items: {stats.item_count}\n"
        f"Tags: {stats.tag_count}\n"
        f"Size on disk: {stats.size_on_disk} bytes"
    )
