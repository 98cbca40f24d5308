"""Configuration management for URL shortener."""

import os
from typing import Optional, Tuple, Type
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
)
from pydantic import Field


class Config(BaseSettings):
    """Application configuration.

    Values come from keyword arguments, then environment variables (and
    ``.env``), then the JSON file named by the ``CONFIG`` environment variable,
    then the defaults below.
    """

    # Server settings
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind to"
    )

    port: int = Field(
        default=8080,
        description="Port to listen on"
    )

    base_url: str = Field(
        default="http://localhost:8080",
        description="Base URL for generating short URLs"
    )

    # Storage settings (database_dsn wins over file_storage_path; neither means memory)
    database_dsn: Optional[str] = Field(
        default=None,
        description="PostgreSQL connection string"
    )

    file_storage_path: Optional[str] = Field(
        default=None,
        description="Path of the JSON-lines storage file"
    )

    # Redis settings (optional)
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL for caching"
    )

    cache_ttl_seconds: int = Field(
        default=3600,
        description="Cache TTL in seconds"
    )

    # URL shortener settings
    short_code_length: int = Field(
        default=8,
        ge=4,
        description="Length of generated short ids"
    )

    max_collision_retries: int = Field(
        default=5,
        description="Maximum retries when generating short ids"
    )

    # Auth settings
    auth_secret_key: Optional[str] = Field(
        default=None,
        description="Key used to sign user cookies. A random per-process key is used if unset."
    )

    auth_cookie_name: str = Field(
        default="user_token",
        description="Name of the signed user cookie"
    )

    trusted_subnet: Optional[str] = Field(
        default=None,
        description="CIDR allowed to read /api/internal/stats (X-Real-IP)"
    )

    # Deletion pipeline settings
    delete_batch_size: int = Field(
        default=100,
        ge=1,
        description="Short ids per storage call when deleting"
    )

    delete_workers: int = Field(
        default=5,
        ge=1,
        description="Concurrent deletion workers"
    )

    shutdown_timeout_seconds: float = Field(
        default=10.0,
        ge=0,
        description="How long shutdown waits for background deletions before cancelling them"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    log_file: Optional[str] = Field(
        default=None,
        description="Log file path (logs to stdout if not specified)"
    )

    log_json: bool = Field(
        default=False,
        description="Use JSON format for logs"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore extra environment variables
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonConfigSettingsSource(settings_cls, json_file=os.getenv("CONFIG") or None),
        )

    def safe_dump(self) -> dict:
        """Configuration for logging, with secrets masked."""
        data = self.model_dump()
        for key in ("auth_secret_key", "database_dsn", "redis_url"):
            if data.get(key):
                data[key] = "***"
        return data


def load_config() -> Config:
    """Load configuration from environment."""
    return Config()
