"""Text rendering for tool results."""

from typing import List

from knowledge_store.schemas import ItemResponse

SEARCH_PREVIEW_CHARS = 200
LIST_PREVIEW_CHARS = 150
SEPARATOR = "\n\n---\n\n"


def preview(content: str, length: int) -> str:
    """Truncate content to ``length`` characters, marking the cut with an ellipsis."""
    if len(content) > length:
        return content[:length] + "..."
    return content


def format_tags(tags: List[str]) -> str:
    return ", ".join(tags) if tags else "none"


def format_item(item: ItemResponse) -> str:
    return (
        f"**{item.title}**\n\n{item.content}\n\n"
        f"*Tags: {format_tags(item.tags)}*\n"
        f"*Created: {item.created_at.isoformat()}*\n"
        f"*Updated: {item.updated_at.isoformat()}*"
    )


def format_search_results(items: List[ItemResponse]) -> str:
    return SEPARATOR.join(
        f"**{item.title}** (ID: {item.id})\n"
        f"{preview(item.content, SEARCH_PREVIEW_CHARS)}\n"
        f"*Tags: {format_tags(item.tags)}*"
        for item in items
    )


def format_listing(items: List[ItemResponse]) -> str:
    return SEPARATOR.join(
        f"**{item.title}** (ID: {item.id})\n"
        f"{preview(item.content, LIST_PREVIEW_CHARS)}\n"
        f"*Updated: {item.updated_at.isoformat()}*"
        for item in items
    )
