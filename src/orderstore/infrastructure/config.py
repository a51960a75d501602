"""Application configuration — environment-driven settings via pydantic-settings.

Every setting can be overridden with an ``ORDERSTORE_``-prefixed
environment variable or a ``.env`` file in the working directory.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ORDERSTORE_", env_file=".env", case_sensitive=False
    )

    # Database (schema must already be applied)
    database_path: Path = Path("data") / "orders.db"

    # Listing
    default_per_page: int = 20

    # Observability
    log_level: str = "WARNING"
    log_format: str = "text"

    @field_validator("log_format")
    @classmethod
    def check_log_format(cls, v: str) -> str:
        if v not in ("text", "json"):
            raise ValueError("log_format must be 'text' or 'json'")
        return v

    @field_validator("default_per_page")
    @classmethod
    def check_per_page(cls, v: int) -> int:
        if v < 1:
            raise ValueError("default_per_page must be positive")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
