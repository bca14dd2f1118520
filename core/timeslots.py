"""
Wall-clock time helpers for recurring weekly slots.

Slots are stored as minutes since midnight and exchanged as "HH:MM".
"""

import re

from .enums import DayOfWeek
from .errors import ValidationError

MINUTES_PER_DAY = 24 * 60
END_OF_DAY = "24:00"

# Accepts "9:05" and "09:05"; hours 0-23, minutes 0-59
TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")


def parse_time(value: str, end_of_day: bool = False) -> int:
    """
    Convert 'HH:MM' to minutes since midnight.

    With end_of_day=True, "24:00" is also accepted (as 1440) so a slot can
    run until midnight. It is never a valid start.

    Raises:
        ValidationError: If the value is not a valid 24h wall-clock time
    """
    if not isinstance(value, str):
        raise ValidationError("Invalid time format. Use HH:MM")
    if end_of_day and value.strip() == END_OF_DAY:
        return MINUTES_PER_DAY
    match = TIME_PATTERN.match(value.strip())
    if not match:
        raise ValidationError("Invalid time format. Use HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    return hours * 60 + minutes


def format_time(minutes: int) -> str:
    """Convert minutes since midnight to zero-padded 'HH:MM'."""
    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise ValueError(f"Minute value out of range: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_day(value: str | DayOfWeek) -> DayOfWeek:
    """Parse a day-of-week name (case-insensitive)."""
    if isinstance(value, DayOfWeek):
        return value
    try:
        return DayOfWeek(str(value).strip().upper())
    except ValueError:
        raise ValidationError("Invalid day of week")


def validate_interval(start_minute: int, end_minute: int) -> None:
    """Slots are half-open [start, end) and must not be empty."""
    if start_minute >= end_minute:
        raise ValidationError("Start time must be before end time")
