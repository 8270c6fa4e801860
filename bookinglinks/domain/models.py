"""
Domain models for availability rules, booked intervals and bookable slots.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from pendulum import DateTime

from .exceptions import InvalidInputError

WEEKDAY_NAMES = {
    0: "Sunday",
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
}


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidInputError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class BookedInterval(TimeRange):
    """
    A confirmed meeting occupying time on the host's calendar.

    Both ends are timezone-aware instants; comparisons are absolute.
    """


@dataclass(frozen=True)
class AvailabilityRule:
    """
    Recurring weekly window in which a host accepts meetings.

    ``start_time`` and ``end_time`` are ``HH:MM`` strings in the host's home
    timezone. Only the weekday is checked here; time strings are parsed when
    the rule is used.
    """
    day_of_week: int  # 0=Sunday, 6=Saturday
    start_time: str
    end_time: str
    id: Optional[int] = None
    user_id: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.day_of_week, int) or not 0 <= self.day_of_week <= 6:
            raise InvalidInputError(
                f"day_of_week must be between 0 (Sunday) and 6 (Saturday), got {self.day_of_week}"
            )

    @property
    def weekday_name(self) -> str:
        return WEEKDAY_NAMES[self.day_of_week]


@dataclass(frozen=True)
class SlotRequest:
    """
    Input for a single-day slot computation.

    ``timezone`` is the zone the produced slots are expressed in;
    ``host_timezone`` is the zone the rule's wall-clock times belong to and
    falls back to ``timezone`` when omitted.
    """
    date: date
    rule: Optional[AvailabilityRule]
    booked: Sequence[BookedInterval] = field(default_factory=tuple)
    duration_minutes: int = 30
    timezone: str = "UTC"
    host_timezone: Optional[str] = None

    @property
    def rule_timezone(self) -> str:
        return self.host_timezone or self.timezone


@dataclass(frozen=True)
class Slot:
    """
    A bookable meeting start. The end is implied by the duration.
    """
    start: DateTime
    duration_minutes: int

    @property
    def end(self) -> DateTime:
        return self.start.add(minutes=self.duration_minutes)

    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start, end=self.end)

    def overlaps(self, interval: TimeRange) -> bool:
        return self.time_range().overlaps(interval)

    def to_iso8601(self) -> str:
        return self.start.to_iso8601_string()

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Weekday, Month D | h:mm AM - h:mm PM (N min)
        """
        date_str = self.start.format("dddd, MMMM D")
        time_str = f"{self.start.format('h:mm A')} - {self.end.format('h:mm A')}"
        return f"{date_str} | {time_str} ({self.duration_minutes} min)"
