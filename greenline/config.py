"""Application configuration via pydantic-settings.

Loads all settings from environment variables (or .env file).
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Central configuration for Greenline."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Coverage ---
    coverage_file: str = "cover/excoveralls.json"

    # --- Suggestions ---
    chunk_max_chars: int = 15_000
    suggestion_language: str = "elixir"
    suggestion_framework: str = "ExUnit"

    # --- GitHub (CI environment) ---
    github_ref: str = ""
    pr_head_sha: str = ""

    # --- Application ---
    log_level: str = "INFO"

    @property
    def coverage_path(self) -> Path:
        """Return the coverage report path, warning when it does not exist."""
        path = Path(self.coverage_file)
        if not path.exists():
            logger.warning("Coverage report not found at %s", path)
        return path


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached application settings singleton."""
    return Settings()
