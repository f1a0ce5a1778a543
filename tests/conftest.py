"""Common test fixtures."""

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncGenerator, Callable

import pytest
import pytest_asyncio

from knowledge_store import config as config_module
from knowledge_store.config import ConfigManager, KnowledgeStoreConfig
from knowledge_store.db import DatabaseType
from knowledge_store.mcp.container import McpContainer, get_container, set_container
from knowledge_store.repository import ItemRepository, SearchRepository
from knowledge_store.services.knowledge_store import KnowledgeStore
from knowledge_store.services.maintenance_service import MaintenanceService


@pytest.fixture
def config_home(tmp_path, monkeypatch) -> Path:
    # Patch HOME environment variable for the duration of the test
    monkeypatch.setenv("HOME", str(tmp_path))
    # On Windows, also set USERPROFILE
    if os.name == "nt":
        monkeypatch.setenv("USERPROFILE", str(tmp_path))
    monkeypatch.setenv("KNOWLEDGE_STORE_CONFIG_DIR", str(tmp_path / ".knowledge-store"))
    return tmp_path


@pytest.fixture(scope="function")
def app_config(config_home) -> KnowledgeStoreConfig:
    """Test configuration with the store file under the temp directory."""
    return KnowledgeStoreConfig(
        env="test",
        database_path=config_home / "data" / "storage.db",
    )


@pytest.fixture
def config_manager(app_config: KnowledgeStoreConfig, config_home: Path):
    # Invalidate config cache to ensure clean state for each test
    config_module._CONFIG_CACHE = None

    config_manager = ConfigManager()
    # Ensure the config file is written to disk
    config_manager.save_config(app_config)
    yield config_manager

    config_module._CONFIG_CACHE = None


@pytest_asyncio.fixture(scope="function")
async def knowledge_store(app_config) -> AsyncGenerator[KnowledgeStore, None]:
    """File-backed store, closed after the test."""
    store = await KnowledgeStore.open(app_config)
    yield store
    await store.close()


@pytest_asyncio.fixture(scope="function")
async def memory_store(app_config) -> AsyncGenerator[KnowledgeStore, None]:
    store = await KnowledgeStore.open(app_config, db_type=DatabaseType.MEMORY)
    yield store
    await store.close()


@pytest.fixture
def item_repository(knowledge_store: KnowledgeStore) -> ItemRepository:
    return knowledge_store.items


@pytest.fixture
def search_repository(knowledge_store: KnowledgeStore) -> SearchRepository:
    return knowledge_store.search_repository


@pytest.fixture
def maintenance_service(knowledge_store: KnowledgeStore) -> MaintenanceService:
    return knowledge_store.maintenance


@pytest.fixture
def mcp_container(knowledge_store: KnowledgeStore, app_config: KnowledgeStoreConfig):
    """Make the test store available to MCP tools."""
    set_container(McpContainer(config=app_config, store=knowledge_store))
    yield get_container()
    set_container(None)


@pytest.fixture
def frozen_clock(monkeypatch) -> Callable[[datetime], None]:
    """Pin the time used for item timestamps.

    Call the returned function to move the clock.
    """
    current = {"now": datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)}

    def set_now(value: datetime) -> None:
        current["now"] = value

    monkeypatch.setattr(
        "knowledge_store.repository.item_repository.utc_now", lambda: current["now"]
    )
    return set_now
