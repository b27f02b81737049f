from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

DEFAULT_API_BASE_URL = "http://localhost:8000/api"


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_float(value: str | None, default: float) -> float:
    if value is None or not value.strip():
        return default
    return float(value)


def _as_str(value: str | None, default: str = "") -> str:
    if value is None:
        return default
    return value.strip()


def _normalize_base_url(value: str | None) -> str:
    candidate = (value or "").strip()
    if not candidate:
        return DEFAULT_API_BASE_URL
    return candidate.rstrip("/")


@dataclass(frozen=True)
class ClientSettings:
    api_base_url: str = DEFAULT_API_BASE_URL
    api_key: str = ""
    api_secret: str = ""
    cache_ttl_minutes: float = 5.0
    timeout_seconds: float = 10.0
    probe_timeout_seconds: float = 5.0
    coalesce_gets: bool = False
    log_level: str = "INFO"

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_minutes * 60.0

    @property
    def credentials_configured(self) -> bool:
        return bool(self.api_key) and bool(self.api_secret)


def load_settings() -> ClientSettings:
    # .env is looked up from the working directory, not from this file.
    load_dotenv(find_dotenv(usecwd=True), override=False)

    return ClientSettings(
        api_base_url=_normalize_base_url(os.getenv("PADEL_API_URL")),
        api_key=_as_str(os.getenv("PADEL_API_KEY")),
        api_secret=_as_str(os.getenv("PADEL_API_SECRET")),
        cache_ttl_minutes=_as_float(os.getenv("PADEL_CACHE_DURATION_MINUTES"), 5.0),
        timeout_seconds=_as_float(os.getenv("PADEL_TIMEOUT_SECONDS"), 10.0),
        probe_timeout_seconds=_as_float(os.getenv("PADEL_PROBE_TIMEOUT_SECONDS"), 5.0),
        coalesce_gets=_as_bool(os.getenv("PADEL_COALESCE_GETS"), default=False),
        log_level=_as_str(os.getenv("PADEL_LOG_LEVEL"), "INFO") or "INFO",
    )
