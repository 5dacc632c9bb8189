# src/uploads_api/config/settings.py
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MiB

DEFAULT_ALLOWED_CONTENT_TYPES = [
    "image/jpeg",
    "image/png",
    "image/gif",
    "application/pdf",
    "text/plain",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
]


class Settings(BaseSettings):
    """
    Single source of truth for all application settings.

    Configuration precedence:
    1. Environment variables prefixed with ``UPLOADS_`` (highest priority)
    2. .env file (if exists)
    3. Default values in this class (lowest priority)

    Usage:
        from uploads_api.config import get_settings
        settings = get_settings()
        root = settings.storage_path
    """

    # Application Settings
    app_name: str = Field(
        default="uploads-api",
        description="Application name"
    )

    # Storage Configuration
    storage_dir: str = Field(
        default="uploads",
        description="Directory under which all uploaded files are stored"
    )

    # Upload Policy
    max_file_size: int = Field(
        default=DEFAULT_MAX_FILE_SIZE,
        gt=0,
        description="Maximum accepted size of a single file, in bytes"
    )

    allowed_content_types: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_CONTENT_TYPES),
        description="Declared content types accepted on upload"
    )

    # HTTP Server
    host: str = Field(default="0.0.0.0", description="Bind address for `serve`")
    port: int = Field(default=8080, description="Bind port for `serve`")

    cors_allow_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to call the API from a browser"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator("allowed_content_types")
    @classmethod
    def normalize_content_types(cls, v: List[str]) -> List[str]:
        """Compare content types case-insensitively."""
        return [content_type.strip().lower() for content_type in v if content_type.strip()]

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one the logging module knows."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        level = v.upper()
        if level not in valid_levels:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {valid_levels}")
        return level

    @property
    def storage_path(self) -> Path:
        """The storage root as a path."""
        return Path(self.storage_dir)

    model_config = SettingsConfigDict(
        env_prefix="UPLOADS_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
