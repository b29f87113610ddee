"""
Configuration management for UnitDesk.
Loads settings from YAML configuration files.
"""

import os
from functools import lru_cache
from typing import Literal

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from YAML config files."""

    # Application
    app_env: str = Field(default="development", alias="APP_ENV")
    app_debug: bool = Field(default=False, alias="APP_DEBUG")

    # Logging Configuration
    log_to_file: bool = Field(default=False, alias="LOG_TO_FILE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file_path: str = Field(default="logs/unitdesk.log", alias="LOG_FILE_PATH")
    log_format: str = Field(default="json", alias="LOG_FORMAT")
    log_max_bytes: int = Field(default=50 * 1024 * 1024, alias="LOG_MAX_BYTES")  # 50MB
    log_backup_count: int = Field(default=5, alias="LOG_BACKUP_COUNT")

    # Backend
    backend_kind: Literal["postgrest", "sql"] = Field(
        default="postgrest", alias="BACKEND_KIND"
    )
    backend_url: str = Field(default="http://localhost:54321", alias="BACKEND_URL")
    backend_api_key: str = Field(default="", alias="BACKEND_API_KEY")
    backend_schema: str | None = Field(default=None, alias="BACKEND_SCHEMA")
    # None keeps the HTTP client's own default timeout
    backend_timeout_seconds: float | None = Field(
        default=None, alias="BACKEND_TIMEOUT_SECONDS"
    )

    # Database (BACKEND_KIND=sql)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./unitdesk.db", alias="DATABASE_URL"
    )
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")

    # Collection queries
    default_page_size: int = Field(default=5, ge=1, alias="DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(default=1000, ge=1, alias="MAX_PAGE_SIZE")
    query_cache_max_entries: int = Field(
        default=256, ge=1, alias="QUERY_CACHE_MAX_ENTRIES"
    )
    order_column: str = Field(default="created_at", alias="ORDER_COLUMN")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "allow"
        populate_by_name = True

    @classmethod
    def from_yaml(cls, config_path: str) -> "Settings":
        """Load settings from YAML file."""
        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}
        return cls(**config_data)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get settings instance - requires CONFIG environment variable.

    Raises:
        ValueError: If CONFIG environment variable is not set
        FileNotFoundError: If config file doesn't exist
    """
    config_path = os.getenv("CONFIG")

    if not config_path:
        raise ValueError(
            "CONFIG environment variable is not set!\n"
            "\n"
            "Please set it to your configuration file path:\n"
            "  export CONFIG=resources/config/local.yaml"
        )

    if not os.path.exists(config_path):
        raise FileNotFoundError(
            f"Configuration file not found: {config_path}\n"
            f"Please check the CONFIG environment variable points to a valid file."
        )

    return Settings.from_yaml(config_path)
