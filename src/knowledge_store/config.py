"""Configuration management for knowledge-store."""

import json
import os
from pathlib import Path
from typing import Any, Literal, Optional

from loguru import logger
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from knowledge_store.utils import setup_logging


DATABASE_NAME = "storage.db"
DATA_DIR_NAME = ".knowledge-store"
CONFIG_FILE_NAME = "config.json"

Environment = Literal["test", "dev", "user"]


def data_dir_path() -> Path:
    """Get app state directory for config, logs and the default SQLite database."""
    if config_dir := os.getenv("KNOWLEDGE_STORE_CONFIG_DIR"):
        return Path(config_dir)

    home = os.getenv("HOME", Path.home())
    return Path(home) / DATA_DIR_NAME


class KnowledgeStoreConfig(BaseSettings):
    """Pydantic model for knowledge-store global configuration."""

    env: Environment = Field(default="dev", description="Environment name")

    # read from config.json unless KNOWLEDGE_STORE_LOG_LEVEL is set
    log_level: str = "INFO"

    database_path: Optional[Path] = Field(
        default=None,
        description="Path of the SQLite store file. Defaults to <data dir>/storage.db.",
    )

    # Result sizes
    search_default_limit: int = Field(
        default=10, description="Default number of search results", gt=0
    )
    list_default_limit: int = Field(
        default=50, description="Default page size for list operations", gt=0
    )
    max_limit: int = Field(
        default=1000,
        description="Upper bound accepted for any limit argument (search and list).",
        gt=0,
    )

    # SQLite tuning
    busy_timeout_ms: int = Field(
        default=5000,
        description="Milliseconds a writer waits for another connection's lock before failing.",
        ge=0,
    )
    cache_size_kib: int = Field(
        default=20000,
        description="SQLite page cache size in KiB (applied as a negative cache_size pragma).",
        gt=0,
    )
    mmap_size: int = Field(
        default=268_435_456,
        description="Bytes of the store file SQLite may memory-map. 0 disables mmap.",
        ge=0,
    )
    optimize_on_close: bool = Field(
        default=True,
        description="Refresh query planner statistics when the store is closed.",
    )

    model_config = SettingsConfigDict(
        env_prefix="KNOWLEDGE_STORE_",
        extra="ignore",
    )

    @model_validator(mode="after")
    def check_limits(self) -> "KnowledgeStoreConfig":
        if self.search_default_limit > self.max_limit:
            raise ValueError("search_default_limit must not exceed max_limit")
        if self.list_default_limit > self.max_limit:
            raise ValueError("list_default_limit must not exceed max_limit")
        return self

    @property
    def data_dir_path(self) -> Path:
        return data_dir_path()

    @property
    def store_path(self) -> Path:
        """Resolved path of the store file.

        The parent directory is created so the engine can open the file.
        """
        path = self.database_path or self.data_dir_path / DATABASE_NAME
        path = Path(path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        return path


# Module-level cache for configuration
_CONFIG_CACHE: Optional[KnowledgeStoreConfig] = None


class ConfigManager:
    """Manages knowledge-store configuration."""

    def __init__(self) -> None:
        self.config_dir = data_dir_path()
        self.config_file = self.config_dir / CONFIG_FILE_NAME

        # Ensure config directory exists
        self.config_dir.mkdir(parents=True, exist_ok=True)

    @property
    def config(self) -> KnowledgeStoreConfig:
        """Get configuration, loading it lazily if needed."""
        return self.load_config()

    def load_config(self) -> KnowledgeStoreConfig:
        """Load configuration from file or create default.

        Environment variables take precedence over file config values.
        Uses module-level cache for performance across ConfigManager instances.
        """
        global _CONFIG_CACHE

        if _CONFIG_CACHE is not None:
            return _CONFIG_CACHE

        if not self.config_file.exists():
            config = KnowledgeStoreConfig()
            self.save_config(config)
            return config

        try:
            file_data = json.loads(self.config_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in config file {self.config_file}: {e}")
            raise SystemExit(
                f"Error: config file is not valid JSON: {self.config_file}\n"
                f"  {e}\n"
                f"Fix or delete the file and re-run."
            )

        # File data is the base; fields set through KNOWLEDGE_STORE_* env vars win
        env_dict = KnowledgeStoreConfig().model_dump()
        merged_data: dict[str, Any] = dict(file_data)
        for field_name in KnowledgeStoreConfig.model_fields.keys():
            if f"KNOWLEDGE_STORE_{field_name.upper()}" in os.environ:
                merged_data[field_name] = env_dict[field_name]

        try:
            _CONFIG_CACHE = KnowledgeStoreConfig(**merged_data)
        except ValueError as e:
            logger.error(f"Failed to load config from {self.config_file}: {e}")
            raise SystemExit(
                f"Error: failed to load config from {self.config_file}\n"
                f"  {e}\n"
                f"Fix or delete the file and re-run."
            )
        return _CONFIG_CACHE

    def save_config(self, config: KnowledgeStoreConfig) -> None:
        """Save configuration to file and invalidate cache."""
        global _CONFIG_CACHE
        save_knowledge_store_config(self.config_file, config)
        _CONFIG_CACHE = None


def save_knowledge_store_config(file_path: Path, config: KnowledgeStoreConfig) -> None:
    """Save configuration to file."""
    try:
        config_dict = config.model_dump(mode="json")
        file_path.write_text(json.dumps(config_dict, indent=2))
    except OSError as e:  # pragma: no cover
        logger.error(f"Failed to save config: {e}")


# Logging initialization functions for different entry points


def configured_log_level() -> str:
    """Log level from config.json, with KNOWLEDGE_STORE_LOG_LEVEL taking precedence."""
    return ConfigManager().config.log_level


def init_cli_logging() -> None:  # pragma: no cover
    """Initialize logging for CLI commands - file only.

    CLI commands should not log to stdout to avoid interfering with
    command output and shell integration.
    """
    log_level = configured_log_level()
    setup_logging(log_dir=data_dir_path(), log_level=log_level, log_to_file=True)


def init_mcp_logging() -> None:  # pragma: no cover
    """Initialize logging for the MCP server - file and stderr.

    The MCP server must not log to stdout as it would corrupt the
    JSON-RPC protocol communication.
    """
    log_level = configured_log_level()
    setup_logging(
        log_dir=data_dir_path(), log_level=log_level, log_to_file=True, log_to_stderr=True
    )
