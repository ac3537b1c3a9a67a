"""
Shift resolution tests (Africa/Lagos, UTC+1, no DST).
"""

from datetime import date, datetime, timedelta

import pytest

from homebake.shifts import (
    ShiftSettings,
    business_date,
    current_shift,
    parse_shift,
    record_business_date,
    shift_bounds,
    shift_query_window,
)


LAGOS = ShiftSettings()


@pytest.mark.parametrize(
    "utc, expected",
    [
        (datetime(2026, 1, 5, 8, 59), "night"),     # 09:59 local
        (datetime(2026, 1, 5, 9, 0), "morning"),    # 10:00 local
        (datetime(2026, 1, 5, 20, 59), "morning"),  # 21:59 local
        (datetime(2026, 1, 5, 21, 0), "night"),     # 22:00 local
        (datetime(2026, 1, 5, 23, 30), "night"),    # 00:30 local next day
    ],
)
def test_current_shift(utc, expected):
    assert current_shift(utc, LAGOS) == expected


def test_custom_hours():
    settings = ShiftSettings(timezone="UTC", morning_start_hour=6, night_start_hour=18)
    assert current_shift(datetime(2026, 1, 5, 6, 0), settings) == "morning"
    assert current_shift(datetime(2026, 1, 5, 18, 0), settings) == "night"


@pytest.mark.parametrize("morning, night", [(10, 22), (6, 14), (16, 23), (2, 12)])
def test_night_shift_inside_its_own_window(morning, night):
    settings = ShiftSettings(morning_start_hour=morning, night_start_hour=night)
    # Lagos is UTC+1: first and last minute of the night ending 2026-03-11
    first = datetime(2026, 3, 10, night) - timedelta(hours=1)
    last = datetime(2026, 3, 11, morning) - timedelta(hours=1, minutes=1)

    for now in (first, last):
        assert current_shift(now, settings) == "night"
        day = business_date(now, settings)
        assert day == date(2026, 3, 11)
        start, end = shift_query_window("night", day, settings)
        assert start <= now < end
        assert record_business_date(now, "night", settings) == day


def test_night_belongs_to_the_day_it_ends():
    # 22:30 local on Jan 5
    assert business_date(datetime(2026, 1, 5, 21, 30), LAGOS) == date(2026, 1, 6)
    # 03:00 local on Jan 6
    assert business_date(datetime(2026, 1, 6, 2, 0), LAGOS) == date(2026, 1, 6)


def test_shift_bounds_night():
    bounds = shift_bounds(datetime(2026, 1, 5, 22, 0), LAGOS)
    assert bounds.shift == "night"
    assert bounds.business_date == date(2026, 1, 6)
    assert bounds.start == datetime(2026, 1, 5, 21, 0)
    assert bounds.end == datetime(2026, 1, 6, 9, 0)


def test_shift_bounds_morning():
    bounds = shift_bounds(datetime(2026, 1, 5, 12, 0), LAGOS)
    assert (bounds.start, bounds.end) == (datetime(2026, 1, 5, 9, 0), datetime(2026, 1, 5, 21, 0))
    assert bounds.to_dict()["business_date"] == "2026-01-05"


def test_query_windows():
    assert shift_query_window("morning", date(2026, 1, 6), LAGOS) == (
        datetime(2026, 1, 5, 23, 0),
        datetime(2026, 1, 6, 23, 0),
    )
    assert shift_query_window("night", date(2026, 1, 6), LAGOS) == (
        datetime(2026, 1, 5, 14, 0),
        datetime(2026, 1, 6, 14, 0),
    )


@pytest.mark.parametrize(
    "created_at, shift, expected",
    [
        (datetime(2026, 1, 5, 20, 0), "night", date(2026, 1, 6)),     # 21:00 local, early night
        (datetime(2026, 1, 6, 2, 0), "night", date(2026, 1, 6)),      # 03:00 local
        (datetime(2026, 1, 5, 23, 30), "morning", date(2026, 1, 6)),  # 00:30 local
        (datetime(2026, 1, 5, 12, 0), "morning", date(2026, 1, 5)),
    ],
)
def test_record_business_date(created_at, shift, expected):
    assert record_business_date(created_at, shift, LAGOS) == expected
    start, end = shift_query_window(shift, expected, LAGOS)
    assert start <= created_at < end


def test_parse_shift():
    assert parse_shift(" Morning ") == "morning"
    with pytest.raises(ValueError):
        parse_shift("evening")
    with pytest.raises(ValueError):
        parse_shift(None)
