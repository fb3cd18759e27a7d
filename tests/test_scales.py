from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from services.scales import LinearScale, TimeScale, tick_increment


def test_nice_rounds_domain_outward() -> None:
    scale = LinearScale(domain=(0.0, 47.0), range=(100.0, 0.0)).nice()

    assert scale.domain == (0.0, 50.0)
    assert scale(25.0) == pytest.approx(50.0)
    assert scale.invert(0.0) == pytest.approx(50.0)


def test_from_extent_widens_degenerate_domains() -> None:
    empty = LinearScale.from_extent(None, None, (100.0, 0.0))
    single = LinearScale.from_extent(5.0, 5.0, (100.0, 0.0))

    assert empty.domain == (0.0, 1.0)
    assert single.domain == (4.0, 6.0)
    assert single(5.0) == pytest.approx(50.0)


def test_linear_ticks_follow_increment() -> None:
    scale = LinearScale(domain=(0.0, 50.0), range=(0.0, 1.0))

    assert tick_increment(0.0, 50.0, 5) == 10.0
    assert scale.ticks(5) == [0.0, 10.0, 20.0, 30.0, 40.0, 50.0]
    assert LinearScale(domain=(0.0, 0.5), range=(0.0, 1.0)).ticks(5) == pytest.approx([0.0, 0.1, 0.2, 0.3, 0.4, 0.5])


def test_collapsed_domain_maps_to_range_midpoint() -> None:
    moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
    scale = TimeScale(domain=(moment, moment), range=(0.0, 200.0))

    assert scale(moment) == 100.0
    assert scale.ticks() == [moment]


def test_time_scale_invert_and_format() -> None:
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    hours = TimeScale(domain=(start, start + timedelta(hours=8)), range=(0.0, 800.0))
    weeks = TimeScale(domain=(start, start + timedelta(days=21)), range=(0.0, 800.0))

    assert hours.invert(400.0) == start + timedelta(hours=4)
    assert hours.tick_format() == "%H:%M"
    assert hours.ticks(4)[0] == start
    assert weeks.tick_format() == "%b %d"


def test_zero_tick_count_yields_no_increment() -> None:
    assert tick_increment(0.0, 10.0, 0) == 0.0
    assert LinearScale(domain=(0.0, 10.0), range=(0.0, 1.0)).ticks(0) == []


def test_multi_year_domain_uses_year_ticks() -> None:
    scale = TimeScale(
        domain=(datetime(2019, 3, 1, tzinfo=timezone.utc), datetime(2024, 6, 1, tzinfo=timezone.utc)),
        range=(0.0, 800.0),
    )

    assert scale.tick_interval(4) == timedelta(days=730)
    assert scale.ticks(4) == [datetime(year, 1, 1, tzinfo=timezone.utc) for year in (2020, 2022, 2024)]
    assert scale.tick_format(4) == "%Y"


def test_season_long_domain_labels_include_year() -> None:
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    scale = TimeScale(domain=(start, start + timedelta(days=300)), range=(0.0, 800.0))

    assert scale.tick_interval(4) == timedelta(days=90)
    assert scale.tick_format(4) == "%b %Y"
    assert len(scale.ticks(4)) <= 5
