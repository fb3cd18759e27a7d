from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest

from datastore.dataset import DatasetStore, parse_record, parse_timestamp
from errors import DataFormatError
from models.records import TimeWindow

NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


def _record(offset: timedelta, **values) -> dict:
    return {"created_at": (NOW - offset).isoformat().replace("+00:00", "Z"), **values}


@pytest.fixture()
def store() -> DatasetStore:
    store = DatasetStore()
    store.load(
        [
            _record(timedelta(days=40), MTemp=10.0),
            _record(timedelta(days=10), MTemp=11.0),
            _record(timedelta(days=3), MTemp=12.0),
            _record(timedelta(hours=24), MTemp=13.0),
            _record(timedelta(hours=2), MTemp=14.0),
        ],
        now=NOW,
    )
    return store


@pytest.mark.parametrize(
    ("window", "expected"),
    [
        (TimeWindow.day, [13.0, 14.0]),
        (TimeWindow.week, [12.0, 13.0, 14.0]),
        (TimeWindow.month, [11.0, 12.0, 13.0, 14.0]),
    ],
)
def test_filter_keeps_readings_at_or_after_cutoff(store: DatasetStore, window, expected) -> None:
    dataset = store.apply_time_filter(window, now=NOW)

    assert [reading.get("MTemp") for reading in dataset.filtered] == expected
    assert dataset.cutoff == NOW - window.duration
    assert all(reading.timestamp >= dataset.cutoff for reading in dataset.filtered)
    dropped = [reading for reading in store.raw if reading not in dataset.filtered]
    assert all(reading.timestamp < dataset.cutoff for reading in dropped)


def test_all_window_is_identity(store: DatasetStore) -> None:
    store.apply_time_filter("day", now=NOW)
    dataset = store.apply_time_filter("all")

    assert dataset.filtered == store.raw
    assert dataset.cutoff is None
    assert store.window is TimeWindow.all


def test_filter_is_idempotent(store: DatasetStore) -> None:
    first = store.apply_time_filter("week", now=NOW)
    second = store.apply_time_filter("week", now=NOW)

    assert first.filtered == second.filtered
    assert store.raw == second.raw


def test_unknown_window_is_rejected(store: DatasetStore) -> None:
    with pytest.raises(ValueError, match="Unknown time window"):
        store.apply_time_filter("year")


def test_load_sorts_and_reapplies_current_window() -> None:
    store = DatasetStore(window="day")
    dataset = store.load(
        [
            _record(timedelta(hours=1), MHum=2.0),
            _record(timedelta(hours=3), MHum=1.0),
            _record(timedelta(days=5), MHum=0.0),
        ],
        now=NOW,
    )

    assert [reading.get("MHum") for reading in dataset.raw] == [0.0, 1.0, 2.0]
    assert [reading.get("MHum") for reading in dataset.filtered] == [1.0, 2.0]
    assert dataset.window is TimeWindow.day


def test_malformed_records_are_dropped_and_logged(caplog) -> None:
    store = DatasetStore()
    caplog.set_level(logging.WARNING, logger="datastore.dataset")

    dataset = store.load(
        [
            _record(timedelta(hours=1), MTemp=20.0),
            {"MTemp": 21.0},
            {"created_at": "not-a-date", "MTemp": 22.0},
            _record(timedelta(hours=2), MTemp="n/a"),
        ],
        now=NOW,
    )

    assert len(dataset.raw) == 2
    assert dataset.raw[0].get("MTemp") is None
    reasons = [getattr(record, "reason", None) for record in caplog.records]
    assert reasons == ["missing created_at", "invalid created_at"]
    assert [record.record_index for record in caplog.records] == [1, 2]


def test_parse_record_coerces_values() -> None:
    reading = parse_record(
        {"created_at": "2024-01-01T00:00:00Z", "MTemp": "21.5", "PRain": None, "PUv": True, "MHum": float("nan")}
    )

    assert reading.get("MTemp") == 21.5
    assert reading.get("PRain") is None
    assert reading.get("PUv") is None
    assert reading.get("MHum") is None
    assert reading.get("MSoil1") is None


def test_parse_timestamp_variants() -> None:
    expected = datetime(2024, 1, 1, tzinfo=timezone.utc)

    assert parse_timestamp("2024-01-01T00:00:00Z") == expected
    assert parse_timestamp("2024-01-01T01:00:00+01:00") == expected
    assert parse_timestamp("2024-01-01T00:00:00") == expected
    assert parse_timestamp(expected.timestamp()) == expected
    with pytest.raises(ValueError):
        parse_timestamp(True)
    with pytest.raises(ValueError):
        parse_timestamp("   ")


def test_parse_record_reports_missing_timestamp() -> None:
    with pytest.raises(DataFormatError) as excinfo:
        parse_record({"MTemp": 1.0}, index=4)

    assert excinfo.value.reason == "missing created_at"
    assert excinfo.value.record_index == 4


@pytest.mark.parametrize(
    ("value", "microsecond"),
    [
        ("2024-06-30T12:00:00.12345+00:00", 123450),
        ("2024-06-30T12:00:00.1+00:00", 100000),
        ("2024-06-30T12:00:00.1234567+00:00", 123456),
        ("2024-06-30 12:00:00.5+00", 500000),
    ],
)
def test_parse_timestamp_accepts_postgrest_fractions(value: str, microsecond: int) -> None:
    parsed = parse_timestamp(value)

    assert parsed == datetime(2024, 6, 30, 12, 0, 0, microsecond, tzinfo=timezone.utc)


def test_load_keeps_rows_with_trimmed_fractions() -> None:
    store = DatasetStore()

    dataset = store.load([{"created_at": "2024-06-30T11:00:00.12345+00:00", "MTemp": 20.0}], now=NOW)

    assert len(dataset.raw) == 1
    assert parse_timestamp("2024-06-30") == datetime(2024, 6, 30, tzinfo=timezone.utc)
