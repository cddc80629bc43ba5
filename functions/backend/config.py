"""
Configuration and settings for the Wally backend service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared import constants


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Database (Postgres expected, any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None)

    # S3-compatible photo storage
    storage_endpoint: Optional[str] = Field(default=None)
    storage_region: Optional[str] = Field(default=None)
    storage_bucket: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Values the mobile client reads from Remote Config
    admin_email: str = Field(default="")
    teacher_email: str = Field(default="")
    allowed_domain: str = Field(default=constants.DEFAULT_ALLOWED_DOMAIN)
    config_version: str = Field(default=constants.DEFAULT_CONFIG_VERSION)

    # Photo upload limits
    max_photo_bytes: int = Field(default=5 * 1024 * 1024)
    max_photo_dimension: int = Field(default=1024)
    photo_jpeg_quality: int = Field(default=80)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
