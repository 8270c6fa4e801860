"""
Core business logic for calculating bookable slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

import logging
from datetime import date
from typing import Iterable, List, Optional, Sequence

import pendulum
from pendulum import DateTime

from .exceptions import InvalidInputError
from .models import AvailabilityRule, BookedInterval, Slot, SlotRequest
from .time_utils import time_to_minutes, validate_timezone, weekday_index

logger = logging.getLogger(__name__)


class SlotAvailabilityEngine:
    """
    Computes bookable meeting starts for one day.

    Algorithm:
    1. Validate duration, timezones and rule weekday
    2. Convert the rule's HH:MM window to minutes since midnight
    3. Step through the window in duration-sized, back-to-back candidates
    4. Anchor each candidate in the host timezone, skipping wall-clock times
       that don't exist there (DST gap), and express it in the target timezone
    5. Drop candidates that conflict with a booked interval
    """

    def compute_available_slots(self, request: SlotRequest) -> List[Slot]:
        """
        Compute the ordered bookable starts for ``request.date``.

        Returns:
            Slots in ascending start order; empty if no rule applies or the
            window is shorter than the duration

        Raises:
            InvalidInputError: If the duration is not positive, a timezone is
                unknown, a time string is malformed or the rule is for
                another weekday
        """
        self._validate(request)

        rule = request.rule
        if rule is None:
            return []

        start_min = time_to_minutes(rule.start_time)
        end_min = time_to_minutes(rule.end_time)
        duration = request.duration_minutes

        slots: List[Slot] = []

        for minute in range(start_min, end_min - duration + 1, duration):
            candidate = self._anchor(request.date, minute, request.rule_timezone)
            if (candidate.hour, candidate.minute) != divmod(minute, 60):
                # wall-clock time skipped by a DST transition
                continue

            slot = Slot(
                start=candidate.in_timezone(request.timezone),
                duration_minutes=duration,
            )

            if any(self.conflicts(slot, booked) for booked in request.booked):
                continue

            slots.append(slot)

        logger.debug(
            "Computed %d slot(s) for %s (%s-%s, %d min)",
            len(slots), request.date, rule.start_time, rule.end_time, duration,
        )
        return slots

    def slots_for_day(
        self,
        day: date,
        rules: Iterable[AvailabilityRule],
        booked: Sequence[BookedInterval],
        duration_minutes: int,
        timezone: str = "UTC",
        host_timezone: Optional[str] = None,
    ) -> List[Slot]:
        """Pick the rule for ``day`` and compute its slots."""
        request = SlotRequest(
            date=day,
            rule=self.find_rule(rules, day),
            booked=tuple(booked),
            duration_minutes=duration_minutes,
            timezone=timezone,
            host_timezone=host_timezone,
        )
        return self.compute_available_slots(request)

    @staticmethod
    def find_rule(rules: Iterable[AvailabilityRule], day: date) -> Optional[AvailabilityRule]:
        """First rule whose weekday matches ``day`` exactly, or None."""
        weekday = weekday_index(day)
        for rule in rules:
            if rule.day_of_week == weekday:
                return rule
        return None

    @staticmethod
    def conflicts(slot: Slot, booked: BookedInterval) -> bool:
        """
        Check whether a booked interval blocks the slot.

        Intervals are half-open, so a booking that ends exactly when the slot
        starts (or starts exactly when it ends) does not conflict.
        """
        slot_start, slot_end = slot.start, slot.end

        starts_inside = slot_start <= booked.start < slot_end
        ends_inside = slot_start < booked.end <= slot_end
        covers_slot = booked.start <= slot_start and booked.end >= slot_end
        inside_slot = booked.start >= slot_start and booked.end <= slot_end

        return starts_inside or ends_inside or covers_slot or inside_slot

    @staticmethod
    def _anchor(day: date, minute: int, timezone: str) -> DateTime:
        return pendulum.datetime(
            day.year, day.month, day.day, minute // 60, minute % 60, tz=timezone
        )

    @staticmethod
    def _validate(request: SlotRequest) -> None:
        if isinstance(request.duration_minutes, bool) or not isinstance(request.duration_minutes, int):
            raise InvalidInputError(
                f"duration_minutes must be an integer, got {request.duration_minutes!r}"
            )
        if request.duration_minutes <= 0:
            raise InvalidInputError(
                f"duration_minutes must be greater than zero, got {request.duration_minutes}"
            )

        validate_timezone(request.timezone)
        validate_timezone(request.rule_timezone)

        rule = request.rule
        if rule is not None:
            if rule.day_of_week != weekday_index(request.date):
                raise InvalidInputError(
                    f"Rule for {rule.weekday_name} does not apply to {request.date}"
                )
            time_to_minutes(rule.start_time)
            time_to_minutes(rule.end_time)


_default_engine = SlotAvailabilityEngine()


def compute_available_slots(request: SlotRequest) -> List[Slot]:
    """Module-level shortcut for :meth:`SlotAvailabilityEngine.compute_available_slots`."""
    return _default_engine.compute_available_slots(request)
