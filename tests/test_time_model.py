"""Tests for time parsing, formatting and interval overlap."""

from datetime import time

import pytest

from app.core.exceptions import ValidationError
from app.utils.time_model import (
    TimeInterval,
    contains,
    format_time,
    format_time_12h,
    from_time,
    overlaps,
    parse_time,
)


@pytest.mark.parametrize("value,expected", [
    ("09:00", 540),
    ("9:30", 570),
    ("00:00", 0),
    ("23:59", 1439),
    ("14:00:00", 840),
    ("4:30 PM", 990),
    ("12:00 AM", 0),
    ("12:15 pm", 735),
    ("9:00 a.m.", 540),
    ("24:00", 1440),
    ("24:00:00", 1440),
])
def test_parse_time_accepts_supported_formats(value, expected):
    assert parse_time(value) == expected


@pytest.mark.parametrize("value", ["", "noon", "24:01", "24:30", "25:00", "9", "09:60", "13:00 PM", "10:00:30", "0:30 AM"])
def test_parse_time_rejects_malformed_input(value):
    with pytest.raises(ValidationError):
        parse_time(value)


def test_parse_time_rejects_non_strings():
    with pytest.raises(ValidationError):
        parse_time(540)


def test_format_time():
    assert format_time(540) == "09:00"
    assert format_time(1439) == "23:59"
    assert format_time(1440) == "24:00"
    assert format_time_12h(990) == "4:30 PM"
    assert format_time_12h(0) == "12:00 AM"
    assert from_time(time(10, 45)) == 645


def test_format_time_out_of_range():
    with pytest.raises(ValidationError):
        format_time(-1)
    with pytest.raises(ValidationError):
        format_time(1500)


def test_interval_requires_start_before_end():
    with pytest.raises(ValidationError):
        TimeInterval(600, 600)
    with pytest.raises(ValidationError):
        TimeInterval(600, 540)
    with pytest.raises(ValidationError):
        TimeInterval(1400, 1500)


def test_interval_from_duration():
    window = TimeInterval.from_duration(540, 90)
    assert window == TimeInterval(540, 630)
    assert window.duration == 90
    assert str(window) == "09:00-10:30"
    with pytest.raises(ValidationError):
        TimeInterval.from_duration(540, 0)


def test_back_to_back_intervals_do_not_overlap():
    assert not overlaps(TimeInterval(540, 600), TimeInterval(600, 660))
    assert not overlaps(TimeInterval(600, 660), TimeInterval(540, 600))


def test_overlap_cases():
    booking = TimeInterval(600, 660)  # 10:00-11:00
    assert overlaps(booking, TimeInterval(570, 630))  # 09:30-10:30
    assert overlaps(booking, TimeInterval(630, 690))
    assert overlaps(booking, TimeInterval(610, 620))  # inside
    assert overlaps(booking, TimeInterval(540, 720))  # around


def test_contains():
    hours = TimeInterval(540, 1020)
    assert contains(hours, TimeInterval(960, 1020))
    assert not contains(hours, TimeInterval(990, 1050))
    assert not contains(hours, TimeInterval(510, 570))


def test_interval_can_run_to_midnight():
    interval = TimeInterval(parse_time("23:00"), parse_time("24:00"))
    assert interval.duration == 60
    assert str(interval) == "23:00-24:00"


def test_interval_cannot_start_at_midnight_end_of_day():
    with pytest.raises(ValidationError):
        TimeInterval(parse_time("24:00"), parse_time("24:00"))
