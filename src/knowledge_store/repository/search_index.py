"""Write helpers for the search_index FTS5 table.

Only the item write path calls these, always inside its own transaction,
so an item and its search entry commit or roll back together. A search row
shares its rowid with the item row, so lookups never scan the index.
"""

from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_store.models import Item


async def replace_entry(session: AsyncSession, item: Item) -> None:
    """Replace the search entry for ``item`` with its current field values.

    The item row must already be flushed.
    """
    await remove_entry(session, item.id)
    await session.execute(
        text(
            "INSERT INTO search_index (rowid, id, title, content, tags) "
            "SELECT rowid, id, :title, :content, :tags FROM item WHERE id = :id"
        ),
        {
            "id": item.id,
            "title": item.title,
            "content": item.content,
            "tags": " ".join(item.tags),
        },
    )
    logger.trace(f"Indexed item {item.id}")


async def remove_entry(session: AsyncSession, item_id: str) -> None:
    """Remove the search entry for an item. Call while the item row still exists."""
    await session.execute(
        text("DELETE FROM search_index WHERE rowid = (SELECT rowid FROM item WHERE id = :id)"),
        {"id": item_id},
    )
