"""The knowledge store: one open store file and the components that work on it."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional, Sequence

from loguru import logger
from sqlalchemy.exc import DBAPIError

from knowledge_store import db
from knowledge_store.config import ConfigManager, KnowledgeStoreConfig
from knowledge_store.db import DatabaseHandle, DatabaseType
from knowledge_store.repository import ItemRepository, SearchRepository
from knowledge_store.repository.item_repository import BatchElement
from knowledge_store.repository.search_repository import DateInput
from knowledge_store.schemas import ItemResponse, OptimizeReport, StoreStats
from knowledge_store.services.exceptions import StorageUnavailableError
from knowledge_store.services.maintenance_service import MaintenanceService
from knowledge_store.utils import TagsInput


class KnowledgeStore:
    """Entry point for every store operation.

    Build one with ``KnowledgeStore.open()`` or ``open_store()`` and close it
    when done. Closing refreshes planner statistics before releasing the file.
    """

    def __init__(self, handle: DatabaseHandle, config: KnowledgeStoreConfig):
        self.handle = handle
        self.config = config
        self.items = ItemRepository(handle, config)
        self.search_repository = SearchRepository(handle, config)
        self.maintenance = MaintenanceService(handle)

    @classmethod
    async def open(
        cls,
        config: Optional[KnowledgeStoreConfig] = None,
        db_type: DatabaseType = DatabaseType.FILESYSTEM,
    ) -> "KnowledgeStore":
        """Open the store file, creating the schema if needed."""
        config = config or ConfigManager().config

        try:
            db_path = config.store_path if db_type == DatabaseType.FILESYSTEM else None
        except OSError as e:
            raise StorageUnavailableError(f"Cannot create store directory: {e}") from e

        engine, session_maker = db.create_async_db(db_path, db_type, config)
        try:
            await db.create_schema(engine)
        except DBAPIError as e:
            await engine.dispose()
            logger.error(f"Cannot open store at {db_path}: {e.orig}")
            raise StorageUnavailableError(f"Cannot open store at {db_path}: {e.orig}") from e

        logger.info(f"Opened store {db_path or 'memory'}")
        return cls(DatabaseHandle(engine, session_maker, db_path, db_type), config)

    async def close(self) -> None:
        """Refresh statistics (unless the store has failed) and release the file."""
        if self.handle.closed:
            return
        try:
            if self.config.optimize_on_close and not self.handle.is_failed:
                await self.maintenance.refresh_statistics()
        except StorageUnavailableError as e:
            logger.warning(f"Skipping statistics refresh on close: {e}")
        finally:
            await self.handle.dispose()

    async def store(
        self, item_id: str, title: str, content: str, tags: TagsInput = None
    ) -> ItemResponse:
        return await self.items.store(item_id, title, content, tags)

    async def store_batch(self, items: Sequence[BatchElement]) -> List[ItemResponse]:
        return await self.items.store_batch(items)

    async def retrieve(self, item_id: str) -> Optional[ItemResponse]:
        return await self.items.retrieve(item_id)

    async def delete(self, item_id: str) -> bool:
        return await self.items.delete(item_id)

    async def list(self, limit: Optional[int] = None, offset: int = 0) -> List[ItemResponse]:
        return await self.items.list(limit=limit, offset=offset)

    async def get_tags(self) -> List[str]:
        return await self.items.get_tags()

    async def get_stats(self) -> StoreStats:
        return await self.items.get_stats()

    async def search(self, query: str, limit: Optional[int] = None) -> List[ItemResponse]:
        return await self.search_repository.search(query, limit=limit)

    async def search_advanced(
        self,
        query: str,
        limit: Optional[int] = None,
        tags: TagsInput = None,
        date_from: DateInput = None,
        date_to: DateInput = None,
    ) -> List[ItemResponse]:
        return await self.search_repository.search_advanced(
            query, limit=limit, tags=tags, date_from=date_from, date_to=date_to
        )

    async def optimize(self) -> OptimizeReport:
        return await self.maintenance.optimize()


@asynccontextmanager
async def open_store(
    config: Optional[KnowledgeStoreConfig] = None,
    db_type: DatabaseType = DatabaseType.FILESYSTEM,
) -> AsyncGenerator[KnowledgeStore, None]:
    """Open a store for the duration of the block."""
    store = await KnowledgeStore.open(config, db_type)
    try:
        yield store
    finally:
        await store.close()
