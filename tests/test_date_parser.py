"""Tests for date parsing helpers."""

from datetime import date, datetime, time, timedelta, UTC

import pytest

from pennywise.utils.date_parser import (
    get_date_range,
    month_bounds,
    parse_clock_time,
    parse_date,
    to_local_time,
    utcnow,
)

# A Wednesday.
TODAY = date(2024, 3, 13)


def test_parse_absolute_date():
    assert parse_date("2024-01-15") == date(2024, 1, 15)


def test_parse_standard_formats():
    # These should all work via dateutil parser
    assert parse_date("January 15, 2024") == date(2024, 1, 15)
    assert parse_date("15/01/2024") == date(2024, 1, 15)


def test_parse_today_yesterday_tomorrow():
    assert parse_date("today", today=TODAY) == TODAY
    assert parse_date(" Yesterday ", today=TODAY) == date(2024, 3, 12)
    assert parse_date("tomorrow", today=TODAY) == date(2024, 3, 14)


def test_parse_today_defaults_to_current_date():
    assert parse_date("today") == date.today()


def test_parse_relative_periods():
    assert parse_date("last week", today=TODAY) == date(2024, 3, 4)
    assert parse_date("this week", today=TODAY) == date(2024, 3, 11)
    assert parse_date("next week", today=TODAY) == date(2024, 3, 18)
    assert parse_date("last month", today=TODAY) == date(2024, 2, 1)
    assert parse_date("next month", today=TODAY) == date(2024, 4, 1)
    assert parse_date("this year", today=TODAY) == date(2024, 1, 1)
    assert parse_date("last year", today=TODAY) == date(2023, 1, 1)


def test_parse_last_weekday():
    assert parse_date("last monday", today=TODAY) == date(2024, 3, 11)
    # The same weekday means one week back, never today.
    assert parse_date("last wednesday", today=TODAY) == date(2024, 3, 6)


def test_last_month_in_january():
    assert parse_date("last month", today=date(2024, 1, 20)) == date(2023, 12, 1)


def test_parse_invalid_relative():
    with pytest.raises(ValueError):
        parse_date("last invalid")


def test_parse_clock_time():
    assert parse_clock_time("07:30") == time(7, 30)
    assert parse_clock_time(" 22:00 ") == time(22, 0)

    for bad in ("25:00", "7", "noon", "12:60"):
        with pytest.raises(ValueError):
            parse_clock_time(bad)


def test_month_bounds():
    assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(date(2023, 12, 31)) == (date(2023, 12, 1), date(2023, 12, 31))


def test_get_date_range_this_periods():
    assert get_date_range("this-month", today=TODAY) == (date(2024, 3, 1), TODAY)
    assert get_date_range("this-year", today=TODAY) == (date(2024, 1, 1), TODAY)
    assert get_date_range("this-week", today=TODAY) == (date(2024, 3, 11), TODAY)


def test_get_date_range_last_month():
    start, end = get_date_range("last-month", today=TODAY)
    assert (start, end) == (date(2024, 2, 1), date(2024, 2, 29))

    start, end = get_date_range("last-month", today=date(2024, 1, 5))
    assert (start, end) == (date(2023, 12, 1), date(2023, 12, 31))


def test_get_date_range_last_year():
    assert get_date_range("last-year", today=TODAY) == (date(2023, 1, 1), date(2023, 12, 31))


def test_get_date_range_last_week():
    start, end = get_date_range("last-week", today=TODAY)
    assert (start, end) == (date(2024, 3, 4), date(2024, 3, 10))
    assert start.weekday() == 0  # Monday
    assert end.weekday() == 6  # Sunday


def test_get_date_range_invalid_period():
    with pytest.raises(ValueError, match="Unknown period"):
        get_date_range("invalid-period")


def test_utcnow_is_naive():
    now = utcnow()
    assert now.tzinfo is None
    assert abs(now - datetime.now(UTC).replace(tzinfo=None)) < timedelta(minutes=1)


def test_to_local_time():
    noon_utc = datetime(2024, 7, 1, 12, 0)
    assert to_local_time(noon_utc, "UTC") == noon_utc
    # Daylight saving time applies in July.
    assert to_local_time(noon_utc, "America/New_York") == datetime(2024, 7, 1, 8, 0)
    assert to_local_time(noon_utc, "Asia/Tokyo") == datetime(2024, 7, 1, 21, 0)


@pytest.mark.parametrize("name", ["", "Mars/Olympus_Mons"])
def test_to_local_time_unknown_zone(name):
    with pytest.raises(ValueError):
        to_local_time(datetime(2024, 7, 1), name)
