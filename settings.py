from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from errors import ConfigError


_SUPABASE_URL_ENV = "DASHBOARD_SUPABASE_URL"
_SUPABASE_KEY_ENV = "DASHBOARD_SUPABASE_KEY"
_TABLE_ENV = "DASHBOARD_TABLE"
_TIMESTAMP_FIELD_ENV = "DASHBOARD_TIMESTAMP_FIELD"
_READINGS_FILE_ENV = "DASHBOARD_READINGS_FILE"
_DEFAULT_WINDOW_ENV = "DASHBOARD_DEFAULT_WINDOW"
_CHART_WIDTH_ENV = "DASHBOARD_CHART_WIDTH"
_CHART_HEIGHT_ENV = "DASHBOARD_CHART_HEIGHT"
_VIEWPORT_WIDTH_ENV = "DASHBOARD_VIEWPORT_WIDTH"
_FETCH_TIMEOUT_ENV = "DASHBOARD_FETCH_TIMEOUT"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_WINDOWS = ("day", "week", "month", "all")


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    table_name: str
    timestamp_field: str
    readings_file: Optional[str]
    default_window: str
    chart_width: int
    chart_height: int
    viewport_width: int
    fetch_timeout: float
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_window(default: str) -> str:
    candidate = _read_str_env(_DEFAULT_WINDOW_ENV, default).lower()
    return candidate if candidate in _WINDOWS else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        supabase_url=_read_optional_env(_SUPABASE_URL_ENV, None),
        supabase_key=_read_optional_env(_SUPABASE_KEY_ENV, None),
        table_name=_read_str_env(_TABLE_ENV, "balcony_data"),
        timestamp_field=_read_str_env(_TIMESTAMP_FIELD_ENV, "created_at"),
        readings_file=_read_optional_env(_READINGS_FILE_ENV, None),
        default_window=_read_window("all"),
        chart_width=_read_positive_int(_CHART_WIDTH_ENV, 640),
        chart_height=_read_positive_int(_CHART_HEIGHT_ENV, 300),
        viewport_width=_read_positive_int(_VIEWPORT_WIDTH_ENV, 1280),
        fetch_timeout=_read_positive_float(_FETCH_TIMEOUT_ENV, 30.0),
        log_level=_read_log_level("INFO"),
    )


def require_credentials(settings: Settings) -> tuple[str, str]:
    """Return ``(url, key)`` or raise ``ConfigError`` naming what is missing."""
    missing = [
        env
        for env, value in (
            (_SUPABASE_URL_ENV, settings.supabase_url),
            (_SUPABASE_KEY_ENV, settings.supabase_key),
        )
        if not value
    ]
    if missing:
        raise ConfigError(f"Missing required configuration: {', '.join(missing)}")
    return (settings.supabase_url or "").rstrip("/"), settings.supabase_key or ""
