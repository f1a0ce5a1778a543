"""Repository for the item table and its write path."""

from datetime import datetime, timedelta
from typing import Any, List, Mapping, Optional, Sequence, Union

from loguru import logger
from pydantic import ValidationError
from sqlalchemy import func, literal_column, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_store.config import KnowledgeStoreConfig
from knowledge_store.db import DatabaseHandle
from knowledge_store.models import Item
from knowledge_store.repository.search_index import remove_entry, replace_entry
from knowledge_store.schemas import ItemCreate, ItemResponse, StoreStats, invalid_input
from knowledge_store.services.exceptions import InvalidInputError
from knowledge_store.utils import TagsInput, utc_now

ONE_MICROSECOND = timedelta(microseconds=1)

BatchElement = Union[ItemCreate, Mapping[str, Any]]


def check_limit(limit: Any, max_limit: int) -> int:
    """Validate a result limit against the configured maximum."""
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InvalidInputError(f"limit must be an integer, got {limit!r}")
    if limit < 1 or limit > max_limit:
        raise InvalidInputError(f"limit must be between 1 and {max_limit}, got {limit}")
    return limit


def next_timestamp(previous: Optional[datetime], now: datetime) -> datetime:
    """Return ``now``, or ``previous`` plus one microsecond if the clock has not moved past it."""
    if previous is None or now > previous:
        return now
    return previous + ONE_MICROSECOND


class ItemRepository:
    """Stores, fetches and lists items.

    Every mutation updates the search index in the same transaction.
    """

    def __init__(self, handle: DatabaseHandle, config: KnowledgeStoreConfig):
        self.handle = handle
        self.config = config

    async def store(
        self,
        item_id: str,
        title: str,
        content: str,
        tags: TagsInput = None,
    ) -> ItemResponse:
        """Insert an item or replace the one stored under the same id.

        ``created_at`` survives a replace; ``updated_at`` always moves forward.
        """
        try:
            data = ItemCreate(id=item_id, title=title, content=content, tags=tags)
        except ValidationError as e:
            raise invalid_input(e) from e

        async with self.handle.writer() as session:
            item = await self._upsert(session, data, utc_now())
            logger.info(f"Stored item {item.id}")
            return ItemResponse.model_validate(item)

    async def store_batch(self, items: Sequence[BatchElement]) -> List[ItemResponse]:
        """Store several items in one transaction.

        Every element is validated before anything is written. All rows share one
        ``updated_at``. Duplicate ids are applied in order, so the last one wins.
        """
        validated = self._validate_batch(items)
        if not validated:
            return []

        async with self.handle.writer() as session:
            ids = {data.id for data in validated}
            latest = await session.scalar(
                select(func.max(Item.updated_at)).where(Item.id.in_(ids))
            )
            timestamp = next_timestamp(latest, utc_now())

            stored: dict[str, Item] = {}
            for data in validated:
                stored[data.id] = await self._upsert(session, data, timestamp, exact=True)

            logger.info(f"Stored batch of {len(validated)} items")
            return [ItemResponse.model_validate(stored[data.id]) for data in validated]

    def _validate_batch(self, items: Sequence[BatchElement]) -> List[ItemCreate]:
        if isinstance(items, (str, bytes)) or not isinstance(items, Sequence):
            raise InvalidInputError("items must be a list")

        validated: List[ItemCreate] = []
        for index, element in enumerate(items):
            if isinstance(element, ItemCreate):
                validated.append(element)
                continue
            if not isinstance(element, Mapping):
                raise InvalidInputError(
                    f"items[{index}]: expected an object with id, title and content"
                )
            try:
                validated.append(ItemCreate.model_validate(dict(element)))
            except ValidationError as e:
                raise invalid_input(e, prefix=f"items[{index}]") from e
        return validated

    async def _upsert(
        self,
        session: AsyncSession,
        data: ItemCreate,
        timestamp: datetime,
        exact: bool = False,
    ) -> Item:
        item = await session.get(Item, data.id)
        if item is None:
            item = Item(
                id=data.id,
                title=data.title,
                content=data.content,
                tags=list(data.tags),
                created_at=timestamp,
                updated_at=timestamp,
            )
            session.add(item)
        else:
            # In place update keeps the rowid, which orders ties in listings
            item.title = data.title
            item.content = data.content
            item.tags = list(data.tags)
            item.updated_at = timestamp if exact else next_timestamp(item.updated_at, timestamp)

        await session.flush()
        await replace_entry(session, item)
        return item

    async def retrieve(self, item_id: str) -> Optional[ItemResponse]:
        """Fetch an item by exact id. Returns None when it does not exist."""
        async with self.handle.session() as session:
            item = await session.get(Item, item_id)
            if item is None:
                logger.debug(f"Item not found: {item_id}")
                return None
            return ItemResponse.model_validate(item)

    async def delete(self, item_id: str) -> bool:
        """Delete an item and its search entry. Returns False if the id was not stored."""
        async with self.handle.writer() as session:
            item = await session.get(Item, item_id)
            if item is None:
                logger.debug(f"Delete skipped, item not found: {item_id}")
                return False

            await remove_entry(session, item_id)
            await session.delete(item)
            logger.info(f"Deleted item {item_id}")
            return True

    async def list(self, limit: Optional[int] = None, offset: int = 0) -> List[ItemResponse]:
        """Page through items, most recently updated first.

        Ties on ``updated_at`` put the most recently inserted row first.
        """
        limit = check_limit(
            self.config.list_default_limit if limit is None else limit, self.config.max_limit
        )
        if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
            raise InvalidInputError(f"offset must be a non-negative integer, got {offset!r}")

        query = (
            select(Item)
            .order_by(Item.updated_at.desc(), literal_column("item.rowid").desc())
            .limit(limit)
            .offset(offset)
        )
        async with self.handle.session() as session:
            result = await session.scalars(query)
            return [ItemResponse.model_validate(item) for item in result.all()]

    async def get_tags(self) -> List[str]:
        """Every distinct tag in use, sorted."""
        async with self.handle.session() as session:
            result = await session.execute(
                text(
                    "SELECT DISTINCT json_each.value FROM item, json_each(item.tags) "
                    "ORDER BY json_each.value"
                )
            )
            return [row[0] for row in result.all()]

    async def get_stats(self) -> StoreStats:
        async with self.handle.session() as session:
            item_count = await session.scalar(select(func.count()).select_from(Item))
            tag_count = await session.scalar(
                text("SELECT COUNT(DISTINCT json_each.value) FROM item, json_each(item.tags)")
            )

        return StoreStats(
            item_count=item_count or 0,
            tag_count=tag_count or 0,
            size_on_disk=await self.handle.size_on_disk(),
        )
