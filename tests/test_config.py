"""Tests for configuration loading."""

import json

import pytest

from knowledge_store import config as config_module
from knowledge_store.config import (
    CONFIG_FILE_NAME,
    ConfigManager,
    KnowledgeStoreConfig,
    configured_log_level,
    data_dir_path,
)


@pytest.fixture
def clean_cache():
    config_module._CONFIG_CACHE = None
    yield
    config_module._CONFIG_CACHE = None


def test_defaults(config_home):
    config = KnowledgeStoreConfig()
    assert config.search_default_limit == 10
    assert config.list_default_limit == 50
    assert config.max_limit == 1000
    assert config.busy_timeout_ms == 5000
    assert config.optimize_on_close is True
    assert config.store_path == config_home / ".knowledge-store" / "storage.db"


def test_data_dir_defaults_to_home(tmp_path, monkeypatch):
    monkeypatch.delenv("KNOWLEDGE_STORE_CONFIG_DIR", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert data_dir_path() == tmp_path / ".knowledge-store"


def test_env_overrides(config_home, monkeypatch):
    monkeypatch.setenv("KNOWLEDGE_STORE_MAX_LIMIT", "200")
    monkeypatch.setenv("KNOWLEDGE_STORE_DATABASE_PATH", str(config_home / "custom.db"))

    config = KnowledgeStoreConfig()
    assert config.max_limit == 200
    assert config.store_path == config_home / "custom.db"


def test_limits_must_fit_max_limit(config_home):
    with pytest.raises(ValueError):
        KnowledgeStoreConfig(max_limit=5)


def test_store_path_creates_parent(config_home):
    config = KnowledgeStoreConfig(database_path=config_home / "nested" / "dir" / "store.db")
    assert config.store_path.parent.is_dir()


def test_configured_log_level_reads_file(config_home, clean_cache):
    ConfigManager().config_file.write_text(json.dumps({"log_level": "WARNING"}))
    assert configured_log_level() == "WARNING"


def test_configured_log_level_env_wins(config_home, clean_cache, monkeypatch):
    ConfigManager().config_file.write_text(json.dumps({"log_level": "WARNING"}))
    monkeypatch.setenv("KNOWLEDGE_STORE_LOG_LEVEL", "DEBUG")
    assert configured_log_level() == "DEBUG"


def test_config_manager_writes_default_file(config_home, clean_cache):
    manager = ConfigManager()
    config = manager.config

    assert manager.config_file == config_home / ".knowledge-store" / CONFIG_FILE_NAME
    assert manager.config_file.exists()
    assert config.max_limit == 1000


def test_config_manager_loads_file(config_home, clean_cache):
    manager = ConfigManager()
    manager.config_file.write_text(json.dumps({"search_default_limit": 25, "log_level": "DEBUG"}))

    config = manager.load_config()
    assert config.search_default_limit == 25
    assert config.log_level == "DEBUG"

    # cached across instances
    assert ConfigManager().config is config


def test_env_takes_precedence_over_file(config_home, clean_cache, monkeypatch):
    manager = ConfigManager()
    manager.config_file.write_text(json.dumps({"list_default_limit": 20}))
    monkeypatch.setenv("KNOWLEDGE_STORE_LIST_DEFAULT_LIMIT", "30")

    assert manager.load_config().list_default_limit == 30


def test_save_config_invalidates_cache(config_manager, app_config):
    first = config_manager.config
    app_config.search_default_limit = 7
    config_manager.save_config(app_config)

    assert config_manager.config is not first
    assert config_manager.config.search_default_limit == 7


def test_invalid_json_exits(config_home, clean_cache):
    manager = ConfigManager()
    manager.config_file.write_text("{not json")

    with pytest.raises(SystemExit):
        manager.load_config()


def test_invalid_values_exit(config_home, clean_cache):
    manager = ConfigManager()
    manager.config_file.write_text(json.dumps({"max_limit": -1}))

    with pytest.raises(SystemExit):
        manager.load_config()
