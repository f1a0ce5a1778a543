"""Tests for the KnowledgeStore lifecycle and failure handling."""

import sqlite3

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from knowledge_store.config import KnowledgeStoreConfig
from knowledge_store.db import DatabaseType
from knowledge_store.services.exceptions import StorageUnavailableError, StoreClosedError
from knowledge_store.services.knowledge_store import KnowledgeStore, open_store


@pytest.mark.asyncio
async def test_open_creates_store_file(app_config):
    store = await KnowledgeStore.open(app_config)
    try:
        assert app_config.store_path.exists()
        assert store.handle.db_type == DatabaseType.FILESYSTEM
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_data_survives_reopen(app_config):
    async with open_store(app_config) as store:
        await store.store("x", "Persistent", "kept across restarts", ["keep"])

    async with open_store(app_config) as store:
        found = await store.retrieve("x")
        assert found is not None
        assert found.tags == ["keep"]
        assert [item.id for item in await store.search("restarts")] == ["x"]


@pytest.mark.asyncio
async def test_operations_after_close_fail(app_config):
    store = await KnowledgeStore.open(app_config)
    await store.close()

    with pytest.raises(StoreClosedError):
        await store.retrieve("x")
    with pytest.raises(StorageUnavailableError):
        await store.store("x", "T", "c")

    # closing twice is fine
    await store.close()


@pytest.mark.asyncio
async def test_close_without_statistics_refresh(config_home):
    config = KnowledgeStoreConfig(
        env="test", database_path=config_home / "store.db", optimize_on_close=False
    )
    store = await KnowledgeStore.open(config)
    await store.store("x", "T", "c")
    await store.close()
    assert store.handle.closed


@pytest.mark.asyncio
async def test_open_rejects_non_database_file(config_home):
    path = config_home / "garbage.db"
    path.write_bytes(b"this is not a sqlite database" * 100)

    config = KnowledgeStoreConfig(env="test", database_path=path)
    with pytest.raises(StorageUnavailableError):
        await KnowledgeStore.open(config)


@pytest.mark.asyncio
async def test_storage_failure_poisons_handle(knowledge_store):
    await knowledge_store.store("x", "T", "c")

    with pytest.raises(StorageUnavailableError):
        async with knowledge_store.handle.session() as session:
            await session.execute(text("SELECT * FROM missing_table"))

    assert knowledge_store.handle.is_failed

    with pytest.raises(StorageUnavailableError):
        await knowledge_store.retrieve("x")
    with pytest.raises(StorageUnavailableError):
        await knowledge_store.search("anything")
    with pytest.raises(StorageUnavailableError):
        await knowledge_store.optimize()

    # close skips maintenance and still releases the file
    await knowledge_store.close()
    assert knowledge_store.handle.closed


def test_lock_timeout_does_not_poison_handle(knowledge_store):
    error = OperationalError("INSERT", {}, sqlite3.OperationalError("database is locked"))

    translated = knowledge_store.handle.storage_error(error)

    assert isinstance(translated, StorageUnavailableError)
    assert "busy" in str(translated)
    assert not knowledge_store.handle.is_failed


@pytest.mark.asyncio
async def test_memory_store(memory_store):
    await memory_store.store("x", "T", "memory content", ["m"])

    assert (await memory_store.retrieve("x")).title == "T"
    assert [item.id for item in await memory_store.search("memory")] == ["x"]

    stats = await memory_store.get_stats()
    assert stats.item_count == 1
    assert stats.size_on_disk > 0


@pytest.mark.asyncio
async def test_store_delegates(knowledge_store):
    await knowledge_store.store_batch(
        [
            {"id": "a", "title": "A", "content": "alpha", "tags": ["x"]},
            {"id": "b", "title": "B", "content": "beta", "tags": ["y"]},
        ]
    )

    assert [item.id for item in await knowledge_store.list()] == ["b", "a"]
    assert await knowledge_store.get_tags() == ["x", "y"]
    assert [
        item.id for item in await knowledge_store.search_advanced("alpha OR beta", tags=["y"])
    ] == ["b"]
    assert await knowledge_store.delete("a") is True
    assert (await knowledge_store.get_stats()).item_count == 1
