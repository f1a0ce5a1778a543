"""Service for store maintenance: checkpoints, planner statistics and index compaction."""

from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from knowledge_store.db import DatabaseHandle
from knowledge_store.schemas import OptimizeReport


async def checkpoint(conn: AsyncConnection) -> None:
    """Copy the WAL into the main file and truncate it."""
    result = await conn.execute(text("PRAGMA wal_checkpoint(TRUNCATE)"))
    busy, log_frames, checkpointed = result.one()
    if busy:
        logger.warning("WAL checkpoint could not complete, readers are still active")
    logger.debug(f"WAL checkpoint: {checkpointed}/{log_frames} frames")


class MaintenanceService:
    """Runs maintenance statements on an autocommit connection under the writer lock."""

    def __init__(self, handle: DatabaseHandle):
        self.handle = handle

    async def optimize(self) -> OptimizeReport:
        """Checkpoint the WAL, refresh statistics and merge the FTS5 index segments.

        Statistics and the merge write new WAL frames, so the WAL is checkpointed
        again before measuring. Safe to run repeatedly.
        """
        size_before = await self.handle.size_on_disk()

        async with self.handle.autocommit_connection() as conn:
            await checkpoint(conn)

            await conn.execute(text("PRAGMA optimize"))
            await conn.execute(text("ANALYZE"))
            await conn.execute(text("INSERT INTO search_index(search_index) VALUES('optimize')"))

            await checkpoint(conn)

        size_after = await self.handle.size_on_disk()
        logger.info(f"Optimized store: {size_before} -> {size_after} bytes")
        return OptimizeReport(size_before=size_before, size_after=size_after)

    async def refresh_statistics(self) -> None:
        """Refresh query planner statistics only."""
        async with self.handle.autocommit_connection() as conn:
            await conn.execute(text("PRAGMA optimize"))
        logger.debug("Refreshed query planner statistics")
