"""Tests for day/month key parsing and window helpers."""

from __future__ import annotations

import logging
from datetime import date, datetime

import pytest

from streakline.services import dates


@pytest.mark.parametrize("key", ["2024-01-01", "2024-02-29", "1999-12-31", "0999-03-04"])
def test_day_key_round_trips(key):
    assert dates.format_day_key(dates.parse_day_key(key)) == key


@pytest.mark.parametrize(
    "key",
    ["", "2024-1-01", "20240101", "2023-02-29", "2024-13-01", "2024-00-10", "yesterday", "2024-01-01T00:00"],
)
def test_parse_day_key_rejects_malformed(key):
    with pytest.raises(dates.InvalidDateKey) as excinfo:
        dates.parse_day_key(key)
    assert excinfo.value.key == key
    assert isinstance(excinfo.value, ValueError)


def test_parse_day_key_rejects_non_strings():
    with pytest.raises(dates.InvalidDateKey):
        dates.parse_day_key(20240101)  # type: ignore[arg-type]


def test_month_key_round_trips():
    assert dates.parse_month_key("2024-07") == (2024, 7)
    assert dates.format_month_key(2024, 7) == "2024-07"
    assert dates.format_month_key(*dates.parse_month_key("0420-11")) == "0420-11"


@pytest.mark.parametrize("key", ["2024-7", "2024-13", "2024-00", "2024/07", "2024-07-01", "0000-01"])
def test_parse_month_key_rejects_malformed(key):
    with pytest.raises(dates.InvalidDateKey):
        dates.parse_month_key(key)


def test_previous_month_key_crosses_year_boundary():
    assert dates.previous_month_key(date(2025, 1, 15)) == "2024-12"
    assert dates.previous_month_key(date(2024, 3, 1)) == "2024-02"
    assert dates.previous_month_key(date(2024, 3, 31)) == "2024-02"


def test_days_in_month_handles_leap_years():
    feb_leap = dates.days_in_month("2024-02")
    assert len(feb_leap) == 29
    assert feb_leap[0] == date(2024, 2, 1)
    assert feb_leap[-1] == date(2024, 2, 29)
    assert len(dates.days_in_month("2023-02")) == 28
    assert len(dates.days_in_month("2024-04")) == 30


def test_day_range_is_inclusive_and_empty_when_reversed():
    span = dates.day_range(date(2024, 1, 30), date(2024, 2, 2))
    assert span == [date(2024, 1, 30), date(2024, 1, 31), date(2024, 2, 1), date(2024, 2, 2)]
    assert dates.day_range(date(2024, 2, 2), date(2024, 2, 1)) == []


def test_window_days_month_runs_from_first_to_today():
    window = dates.window_days("month", date(2024, 5, 10))
    assert window[0] == date(2024, 5, 1)
    assert window[-1] == date(2024, 5, 10)
    assert len(window) == 10


def test_window_days_thirty_days_is_inclusive_of_both_ends():
    window = dates.window_days("30days", date(2024, 5, 31))
    assert window[0] == date(2024, 5, 1)
    assert window[-1] == date(2024, 5, 31)
    assert len(window) == 31


def test_window_days_rejects_unknown_window():
    with pytest.raises(ValueError):
        dates.window_days("week", date(2024, 5, 31))


def test_normalize_skips_malformed_keys_and_logs(caplog):
    with caplog.at_level(logging.WARNING, logger="streakline"):
        days = dates.normalize_completion_days(["2024-01-01", "bogus", "2024-02-30", date(2024, 1, 3)])

    assert days == {date(2024, 1, 1), date(2024, 1, 3)}
    skipped = [r for r in caplog.records if r.getMessage() == "Skipping malformed completion key"]
    assert [r.key for r in skipped] == ["bogus", "2024-02-30"]


def test_normalize_collapses_datetimes_to_dates():
    assert dates.normalize_completion_days([datetime(2024, 1, 1, 23, 59)]) == {date(2024, 1, 1)}
