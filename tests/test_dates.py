"""Tests for day boundaries and date presets."""

from datetime import date, datetime, timezone, timedelta

import pytest

from showdown_winrate.application.dates import day_end_ts, day_start_ts, preset_range

UTC = timezone.utc


def test_day_bounds_utc():
    d = date(2025, 3, 2)
    assert day_start_ts(d, UTC) == int(datetime(2025, 3, 2, tzinfo=UTC).timestamp())
    assert day_end_ts(d, UTC) - day_start_ts(d, UTC) == 86_399


def test_day_bounds_respect_offset():
    plus2 = timezone(timedelta(hours=2))
    d = date(2025, 3, 2)
    assert day_start_ts(d, UTC) - day_start_ts(d, plus2) == 7_200


def test_local_time_default():
    d = date(2025, 3, 2)
    assert day_start_ts(d) == int(datetime(2025, 3, 2, 0, 0, 0).timestamp())
    assert day_end_ts(d) == int(datetime(2025, 3, 2, 23, 59, 59).timestamp())


def test_absent_date():
    assert day_start_ts(None) is None
    assert day_end_ts(None) is None


@pytest.mark.parametrize("kind,expected", [
    ("today", (date(2025, 3, 15), date(2025, 3, 15))),
    ("last7", (date(2025, 3, 9), date(2025, 3, 15))),
    ("last30", (date(2025, 2, 14), date(2025, 3, 15))),
    ("this-month", (date(2025, 3, 1), date(2025, 3, 15))),
    ("prev-month", (date(2025, 2, 1), date(2025, 2, 28))),
    ("all-time", (None, None)),
])
def test_presets(kind, expected):
    assert preset_range(kind, today=date(2025, 3, 15)) == expected


def test_prev_month_across_year():
    assert preset_range("prev-month", today=date(2025, 1, 10)) == (date(2024, 12, 1), date(2024, 12, 31))


def test_unknown_preset():
    with pytest.raises(ValueError):
        preset_range("fortnight")
