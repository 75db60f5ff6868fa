"""Time-of-day parsing, formatting and interval arithmetic.

All times are minutes since midnight (0-1439) in the provider's local civil
calendar. This module is the only place time strings are parsed; every
slot, blocked-range and booking comparison goes through ``overlaps``.
"""

import re
from dataclasses import dataclass
from datetime import time

from app.core.exceptions import ValidationError

MINUTES_PER_DAY = 24 * 60

_TWELVE_HOUR = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp])\.?[Mm]\.?\s*$")
_TWENTY_FOUR_HOUR = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")


def parse_time(value: str) -> int:
    """Parse "H:MM AM/PM", "HH:MM" or "HH:MM:SS" into minutes since midnight.

    "24:00" is accepted as the end of the day (1440) so a range can run to
    midnight; "12:00 AM" is the start of the day (0). Raises ValidationError for
    anything else, including non-zero seconds.
    """
    if not isinstance(value, str):
        raise ValidationError(f"Time must be a string, got {type(value).__name__}")

    match = _TWELVE_HOUR.match(value)
    if match:
        hour, minute, meridiem = int(match.group(1)), int(match.group(2)), match.group(3).upper()
        if not 1 <= hour <= 12 or minute > 59:
            raise ValidationError(f"Invalid time: {value!r}")
        hour = hour % 12
        if meridiem == "P":
            hour += 12
        return hour * 60 + minute

    match = _TWENTY_FOUR_HOUR.match(value)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        seconds = int(match.group(3) or 0)
        if hour == 24 and minute == 0 and seconds == 0:
            return MINUTES_PER_DAY
        if hour > 23 or minute > 59 or seconds != 0:
            raise ValidationError(f"Invalid time: {value!r}")
        return hour * 60 + minute

    raise ValidationError(f"Unrecognised time format: {value!r} (expected 'HH:MM' or 'H:MM AM')")


def from_time(t: time) -> int:
    """Convert a datetime.time into minutes since midnight."""
    return t.hour * 60 + t.minute


def format_time(minutes: int) -> str:
    """Format minutes since midnight as HH:MM; 1440 is "24:00"."""
    if minutes == MINUTES_PER_DAY:
        return "24:00"
    _check_minutes(minutes)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_time_12h(minutes: int) -> str:
    """Format minutes since midnight for display, e.g. "4:30 PM"."""
    _check_minutes(minutes)
    hour, minute = divmod(minutes, 60)
    meridiem = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12}:{minute:02d} {meridiem}"


def _check_minutes(minutes: int) -> None:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValidationError(f"Minutes out of range: {minutes}")


@dataclass(frozen=True, order=True)
class TimeInterval:
    """Half-open interval [start, end) in minutes since midnight.

    ``end`` may equal MINUTES_PER_DAY for a window that runs to midnight.
    """

    start: int
    end: int

    def __post_init__(self):
        if not 0 <= self.start < self.end <= MINUTES_PER_DAY:
            raise ValidationError(
                f"Invalid interval {self.start}-{self.end}: start must be before end within one day"
            )

    @classmethod
    def from_duration(cls, start: int, duration_minutes: int) -> "TimeInterval":
        if duration_minutes <= 0:
            raise ValidationError(f"Duration must be positive, got {duration_minutes}")
        return cls(start, start + duration_minutes)

    @property
    def duration(self) -> int:
        return self.end - self.start

    def __str__(self) -> str:
        return f"{format_time(self.start)}-{format_time(self.end)}"


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    """True when two half-open intervals share at least one minute.

    A booking ending at 10:00 does not conflict with one starting at 10:00.
    """
    return a.start < b.end and b.start < a.end


def contains(outer: TimeInterval, inner: TimeInterval) -> bool:
    return outer.start <= inner.start and inner.end <= outer.end
