"""Database engine, sessions and the store handle."""

import asyncio
from contextlib import asynccontextmanager
from enum import Enum, auto
from pathlib import Path
from typing import AsyncGenerator, Optional, Tuple

from loguru import logger
from sqlalchemy import event, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from knowledge_store.config import KnowledgeStoreConfig
from knowledge_store.models import CREATE_SEARCH_INDEX
from knowledge_store.models.base import Base
from knowledge_store.services.exceptions import StorageUnavailableError, StoreClosedError


class DatabaseType(Enum):
    """Types of supported databases."""

    MEMORY = auto()
    FILESYSTEM = auto()

    @classmethod
    def get_db_url(cls, db_path: Optional[Path], db_type: "DatabaseType") -> str:
        """Get SQLAlchemy URL for database path."""
        if db_type == cls.MEMORY:
            logger.info("Using in-memory SQLite database")
            return "sqlite+aiosqlite://"

        return f"sqlite+aiosqlite:///{db_path}"


def _configure_sqlite_connection(
    dbapi_conn, config: KnowledgeStoreConfig, enable_wal: bool = True
) -> None:
    """Apply per-connection pragmas.

    Args:
        dbapi_conn: Raw DBAPI connection
        config: Supplies cache, mmap and busy timeout sizes
        enable_wal: Whether to enable WAL mode (not supported for in-memory databases)
    """
    cursor = dbapi_conn.cursor()
    try:
        if enable_wal:
            # page_size only takes effect before the first table is written
            cursor.execute("PRAGMA page_size=8192")
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute(f"PRAGMA mmap_size={config.mmap_size}")
        cursor.execute(f"PRAGMA busy_timeout={config.busy_timeout_ms}")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA temp_store=MEMORY")
        cursor.execute(f"PRAGMA cache_size=-{config.cache_size_kib}")
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def create_async_db(
    db_path: Optional[Path],
    db_type: DatabaseType,
    config: KnowledgeStoreConfig,
) -> Tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create an async engine and session maker with pragmas applied on connect."""
    db_url = DatabaseType.get_db_url(db_path, db_type)
    logger.debug(f"Creating engine for db_url: {db_url}")

    if db_type == DatabaseType.MEMORY:
        # One shared connection, otherwise every checkout would see an empty database
        engine = create_async_engine(
            db_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_async_engine(db_url, connect_args={"check_same_thread": False})

    enable_wal = db_type != DatabaseType.MEMORY

    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragmas(dbapi_conn, connection_record):
        _configure_sqlite_connection(dbapi_conn, config, enable_wal=enable_wal)

    session_maker = async_sessionmaker(engine, expire_on_commit=False)
    return engine, session_maker


@asynccontextmanager
async def scoped_session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Get a scoped session with proper lifecycle management.

    Commits on success, rolls back on any exception.

    Args:
        session_maker: Session maker to create scoped sessions
    """
    session = session_maker()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def create_schema(engine: AsyncEngine) -> None:
    """Create the item table and the FTS5 search index if they do not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(CREATE_SEARCH_INDEX)


class DatabaseHandle:
    """An open store file.

    Owns the engine and session maker, serializes writers inside this process,
    and remembers the first storage failure so later calls fail fast.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        session_maker: async_sessionmaker[AsyncSession],
        db_path: Optional[Path],
        db_type: DatabaseType,
    ):
        self.engine = engine
        self.session_maker = session_maker
        self.db_path = db_path
        self.db_type = db_type
        self.write_lock = asyncio.Lock()
        self.failure: Optional[BaseException] = None
        self.closed = False

    @property
    def is_failed(self) -> bool:
        return self.failure is not None

    def check_available(self) -> None:
        """Raise if the handle is closed or has seen a storage failure."""
        if self.closed:
            raise StoreClosedError("Store is closed")
        if self.failure is not None:
            raise StorageUnavailableError(
                f"Store is unavailable after an earlier failure: {self.failure}"
            )

    def storage_error(self, error: DBAPIError) -> StorageUnavailableError:
        """Translate a driver error, recording it unless it is a lock timeout."""
        message = str(error.orig) if error.orig is not None else str(error)
        lowered = message.lower()
        if "locked" in lowered or "busy" in lowered:
            logger.warning(f"Store is busy: {message}")
            return StorageUnavailableError(f"Store is busy: {message}")

        if self.failure is None:
            self.failure = error
        logger.error(f"Storage failure on {self.db_path or 'memory'}: {message}")
        return StorageUnavailableError(f"Storage failure: {message}")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Scoped session that turns driver errors into StorageUnavailableError."""
        self.check_available()
        try:
            async with scoped_session(self.session_maker) as session:
                yield session
        except DBAPIError as e:
            raise self.storage_error(e) from e

    @asynccontextmanager
    async def writer(self) -> AsyncGenerator[AsyncSession, None]:
        """Session for a mutation. Only one writer runs at a time."""
        self.check_available()
        async with self.write_lock:
            async with self.session() as session:
                yield session

    @asynccontextmanager
    async def autocommit_connection(self) -> AsyncGenerator[AsyncConnection, None]:
        """Connection outside any transaction, held under the writer lock.

        Needed for checkpoints and ANALYZE, which cannot run in a transaction.
        """
        self.check_available()
        async with self.write_lock:
            try:
                async with self.engine.connect() as conn:
                    conn = await conn.execution_options(isolation_level="AUTOCOMMIT")
                    yield conn
            except DBAPIError as e:
                raise self.storage_error(e) from e

    async def size_on_disk(self) -> int:
        """Bytes used by the store: main file plus WAL, or allocated pages in memory."""
        if self.db_type == DatabaseType.FILESYSTEM and self.db_path is not None:
            wal_path = self.db_path.with_name(self.db_path.name + "-wal")
            try:
                return sum(
                    path.stat().st_size for path in (self.db_path, wal_path) if path.exists()
                )
            except OSError as e:
                raise StorageUnavailableError(f"Cannot read store size: {e}") from e

        async with self.session() as session:
            page_count = await session.scalar(text("PRAGMA page_count"))
            page_size = await session.scalar(text("PRAGMA page_size"))
        return (page_count or 0) * (page_size or 0)

    async def dispose(self) -> None:
        if self.closed:
            return
        self.closed = True
        await self.engine.dispose()
        logger.info(f"Closed store {self.db_path or 'memory'}")
