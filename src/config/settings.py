# src/config/settings.py - v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for API credentials, adapter limits, cache and
record store backends, rate limiting and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Web search (Google Custom Search) ===
    google_cse_api_key: str = ""
    google_cse_id: str = ""
    google_cse_endpoint: str = "https://www.googleapis.com/customsearch/v1"
    web_search_page_size: int = 10
    web_search_query_delay_ms: int = 200
    web_search_max_results: int = 20
    web_search_timeout_s: float = 15.0

    # === Messaging (Telegram MTProto) ===
    telegram_api_id: int = 0
    telegram_api_hash: str = ""
    telegram_session: str = ""
    telegram_search_limit: int = 20
    telegram_connection_retries: int = 5

    # === Torrent indexers ===
    torrent_request_timeout_s: float = 10.0
    torrent_per_site_limit: int = 10
    torrent_max_results: int = 20
    torrent_query_delay_ms: int = 500
    torrent_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    )
    torrent_disabled_sites: str = ""

    # === Scoring ===
    confidence_threshold: int = 40

    # === Result cache ===
    cache_enabled: bool = True
    cache_backend: Literal["json", "sqlite", "redis"] = "json"
    cache_root: Path = Path("~/.leakwatch/cache")
    cache_redis_url: str = ""
    cache_ttl_hours: int = 48

    # === Record store ===
    record_store_backend: Literal["memory", "sqlite"] = "sqlite"
    record_store_path: Path = Path("~/.leakwatch/leakwatch.db")

    # === Scheduled scans ===
    due_scan_batch_size: int = 10

    # === Rate limiting ===
    rate_limit_sweep_interval_s: int = 300

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("confidence_threshold")
    @classmethod
    def validate_threshold(cls, v: int) -> int:  # noqa: N805
        if not 0 <= v <= 100:
            raise ValueError("confidence_threshold must be within 0..100")
        return v

    @field_validator("cache_ttl_hours")
    @classmethod
    def validate_ttl(cls, v: int) -> int:  # noqa: N805
        if v <= 0:
            raise ValueError("cache_ttl_hours must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field credential pairs."""
        errors: list[str] = []

        if self.telegram_session and (
            self.telegram_api_id <= 0 or not self.telegram_api_hash
        ):
            errors.append(
                "TELEGRAM_SESSION requires TELEGRAM_API_ID and TELEGRAM_API_HASH"
            )

        if bool(self.google_cse_api_key) != bool(self.google_cse_id):
            errors.append(
                "GOOGLE_CSE_API_KEY and GOOGLE_CSE_ID must be set together"
            )

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def web_search_configured(self) -> bool:
        return bool(self.google_cse_api_key and self.google_cse_id)

    @property
    def telegram_configured(self) -> bool:
        return bool(self.telegram_session)

    @property
    def torrent_disabled_sites_list(self) -> list[str]:
        """Parse comma-separated disabled torrent site names (lowercased)."""
        return [
            s.strip().lower()
            for s in self.torrent_disabled_sites.split(",")
            if s.strip()
        ]


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
