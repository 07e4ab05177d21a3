"""Configuration loading for couchmapper.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Document store configuration
    store_backend: Literal["couchdb", "memory"] = Field(
        default="couchdb",
        description="Document store backend type",
    )
    couchdb_url: str = Field(
        default="http://localhost:5984",
        description="CouchDB server URL",
    )
    couchdb_username: str = Field(
        default="",
        description="CouchDB user for basic authentication",
    )
    couchdb_password: str = Field(
        default="",
        description="CouchDB password for basic authentication",
    )
    couchdb_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for CouchDB HTTP requests in seconds",
    )
    find_page_size: int = Field(
        default=200,
        description="Documents requested per Mango _find page",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    @field_validator("couchdb_url")
    @classmethod
    def validate_couchdb_url(cls, v: str) -> str:
        """Ensure the CouchDB URL is an http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("couchdb_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("couchdb_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Ensure request timeout is positive."""
        if v <= 0:
            raise ValueError("couchdb_timeout_seconds must be positive")
        return v

    @field_validator("find_page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """Ensure page size is positive."""
        if v <= 0:
            raise ValueError("find_page_size must be positive")
        return v


def load_settings(env_file: str | None = None) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["Settings", "load_settings"]
