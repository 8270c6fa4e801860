"""
Time-of-day and calendar helpers shared by the engine, services and CLI.
"""

import re
from datetime import date
from typing import List

import pendulum
from pendulum import DateTime

from .exceptions import InvalidInputError

_HH_MM = re.compile(r"^(\d{1,2}):(\d{2})$")
_TWELVE_HOUR = re.compile(r"^(\d{1,2}):(\d{2})(?:\s*([AaPp][Mm]))?$")

MINUTES_PER_DAY = 24 * 60


def time_to_minutes(value: str) -> int:
    """
    Convert an ``HH:MM`` 24-hour string to minutes since midnight.

    Raises:
        InvalidInputError: If the string is not a valid time of day
    """
    match = _HH_MM.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise InvalidInputError(f"Invalid time of day '{value}', expected HH:MM")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidInputError(f"Invalid time of day '{value}', expected HH:MM")

    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight back to an ``HH:MM`` string."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidInputError(f"Minutes must be within one day, got {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_time_string(value: str, reference: DateTime) -> DateTime:
    """
    Apply a wall-clock time such as ``9:30 AM`` or ``14:15`` to a reference day.

    Without an AM/PM marker the hour is read as 24-hour time.
    """
    match = _TWELVE_HOUR.match(value.strip())
    if not match:
        raise InvalidInputError(f"Invalid time '{value}'")

    hour, minute = int(match.group(1)), int(match.group(2))
    period = (match.group(3) or "").upper()

    if period:
        if not 1 <= hour <= 12:
            raise InvalidInputError(f"Invalid 12-hour time '{value}'")
        if period == "PM" and hour < 12:
            hour += 12
        elif period == "AM" and hour == 12:
            hour = 0

    if hour > 23 or minute > 59:
        raise InvalidInputError(f"Invalid time '{value}'")

    return reference.set(hour=hour, minute=minute, second=0, microsecond=0)


def validate_timezone(name: str) -> str:
    """Return the timezone name if pendulum knows it, otherwise raise."""
    if not name:
        raise InvalidInputError("Timezone must not be empty")
    try:
        pendulum.timezone(name)
    except (ValueError, KeyError) as exc:
        raise InvalidInputError(f"Unknown timezone '{name}'") from exc
    return name


def format_in_timezone(moment: DateTime, fmt: str, timezone: str) -> str:
    """Render an instant as wall-clock text in the given timezone."""
    return moment.in_timezone(validate_timezone(timezone)).format(fmt)


def weekday_index(day: date) -> int:
    """Day of week with Sunday as 0 and Saturday as 6."""
    return day.isoweekday() % 7


def generate_calendar_dates(year: int, month: int) -> List[pendulum.Date]:
    """
    Dates for a month view: whole weeks from the Sunday on or before the 1st
    through the Saturday on or after the last day of the month.
    """
    if not 1 <= month <= 12:
        raise InvalidInputError(f"Month must be between 1 and 12, got {month}")

    first_day = pendulum.date(year, month, 1)
    last_day = first_day.add(days=first_day.days_in_month - 1)

    current = first_day.subtract(days=weekday_index(first_day))
    end = last_day.add(days=6 - weekday_index(last_day))

    dates: List[pendulum.Date] = []
    while current <= end:
        dates.append(current)
        current = current.add(days=1)

    return dates
