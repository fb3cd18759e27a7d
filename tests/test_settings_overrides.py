from __future__ import annotations

from typing import Iterable

from datastore.dataset import build_default_store
from models.records import TimeWindow
from services.dashboard import build_default_dashboard
from settings import get_settings
from storage.sources import JsonFileReadingsSource, SupabaseReadingsSource, build_default_source


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


CACHES = (get_settings, build_default_source, build_default_store, build_default_dashboard)


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    readings_path = tmp_path / "readings.json"

    monkeypatch.setenv("DASHBOARD_READINGS_FILE", str(readings_path))
    monkeypatch.setenv("DASHBOARD_TIMESTAMP_FIELD", "inserted_at")
    monkeypatch.setenv("DASHBOARD_DEFAULT_WINDOW", "Week")
    monkeypatch.setenv("DASHBOARD_CHART_WIDTH", "900")
    monkeypatch.setenv("DASHBOARD_CHART_HEIGHT", "-5")
    monkeypatch.setenv("DASHBOARD_VIEWPORT_WIDTH", "wide")
    _clear_caches(CACHES)

    try:
        source = build_default_source()
        store = build_default_store()
        dashboard = build_default_dashboard()

        assert isinstance(source, JsonFileReadingsSource)
        assert source.path == readings_path
        assert store.timestamp_field == "inserted_at"
        assert store.window is TimeWindow.week
        assert dashboard.store is store
        assert dashboard.width == 900
        assert dashboard.height == 300
        assert dashboard.viewport_width == 1280
    finally:
        _clear_caches(CACHES)


def test_supabase_settings(monkeypatch) -> None:
    monkeypatch.delenv("DASHBOARD_READINGS_FILE", raising=False)
    monkeypatch.setenv("DASHBOARD_SUPABASE_URL", " https://demo.supabase.co/ ")
    monkeypatch.setenv("DASHBOARD_SUPABASE_KEY", "anon")
    monkeypatch.setenv("DASHBOARD_TABLE", "readings")
    monkeypatch.setenv("DASHBOARD_FETCH_TIMEOUT", "5")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    _clear_caches(CACHES)

    try:
        settings = get_settings()
        source = build_default_source()

        assert settings.log_level == "DEBUG"
        assert settings.fetch_timeout == 5.0
        assert isinstance(source, SupabaseReadingsSource)
        assert source.base_url == "https://demo.supabase.co"
        assert source.table == "readings"
    finally:
        _clear_caches(CACHES)
