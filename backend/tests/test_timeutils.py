import datetime as dt

import pytest

from tutorsync.core.exceptions import TimeFormatError, TimeRangeError
from tutorsync.services.timeutils import (
    Weekday,
    normalize_day_name,
    resolve_weekday_to_date,
    to_24_hour,
    to_minutes,
    to_time_string,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [("00:00", 0), ("09:30", 570), ("9:05", 545), ("23:59", 1439), (" 14:00 ", 840)],
)
def test_to_minutes_parses_24_hour_strings(value, expected):
    assert to_minutes(value) == expected


@pytest.mark.parametrize("value", ["24:00", "12:60", "ab:cd", "1200", "", "9", None, 900])
def test_to_minutes_rejects_malformed_input(value):
    with pytest.raises(TimeFormatError):
        to_minutes(value)


def test_time_format_error_is_a_value_error():
    with pytest.raises(ValueError):
        to_minutes("25:00")


def test_to_time_string_zero_pads():
    assert to_time_string(0) == "00:00"
    assert to_time_string(545) == "09:05"
    assert to_time_string(1439) == "23:59"


@pytest.mark.parametrize("minutes", [-1, 1440, 2000])
def test_to_time_string_rejects_out_of_range(minutes):
    with pytest.raises(TimeRangeError) as excinfo:
        to_time_string(minutes)
    assert excinfo.value.details == {"minutes": minutes}


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("2pm", "14:00"),
        ("2:30 PM", "14:30"),
        ("12:15 a.m.", "00:15"),
        ("12 PM", "12:00"),
        ("11:45am", "11:45"),
        ("14:00", "14:00"),
        ("7:05", "07:05"),
    ],
)
def test_to_24_hour_converts_twelve_hour_notation(value, expected):
    assert to_24_hour(value) == expected


@pytest.mark.parametrize("value", ["13pm", "noon-ish", "", "25:00", None, "0am"])
def test_to_24_hour_falls_back_on_malformed_times(value):
    assert to_24_hour(value) == "09:00"
    assert to_24_hour(value, fallback="10:30") == "10:30"


@pytest.mark.parametrize(
    ("value", "expected"),
    [("monday", Weekday.monday), ("Tue", Weekday.tuesday), ("THURS", Weekday.thursday), ("sun.", Weekday.sunday)],
)
def test_normalize_day_name_accepts_full_and_short_names(value, expected):
    assert normalize_day_name(value) is expected


def test_normalize_day_name_rejects_unknown_day():
    with pytest.raises(TimeFormatError):
        normalize_day_name("Funday")


def test_resolve_weekday_to_date_picks_next_occurrence():
    friday_morning = dt.datetime(2025, 6, 27, 9, 0)
    assert resolve_weekday_to_date("Monday", friday_morning) == dt.date(2025, 6, 30)
    assert resolve_weekday_to_date("Thursday", friday_morning) == dt.date(2025, 7, 3)


def test_resolve_weekday_to_date_keeps_today_until_noon_hour():
    assert resolve_weekday_to_date("Friday", dt.datetime(2025, 6, 27, 9, 0)) == dt.date(2025, 6, 27)
    # hour 12 still counts as "morning" under the default cutoff
    assert resolve_weekday_to_date("Friday", dt.datetime(2025, 6, 27, 12, 59)) == dt.date(2025, 6, 27)


def test_resolve_weekday_to_date_rolls_to_next_week_after_cutoff():
    assert resolve_weekday_to_date("fri", dt.datetime(2025, 6, 27, 13, 0)) == dt.date(2025, 7, 4)
    assert resolve_weekday_to_date("fri", dt.datetime(2025, 6, 27, 9, 0), cutoff_hour=8) == dt.date(2025, 7, 4)


def test_weekday_from_date():
    assert Weekday.from_date(dt.date(2025, 6, 30)) is Weekday.monday
    assert Weekday.sunday.position == 6
