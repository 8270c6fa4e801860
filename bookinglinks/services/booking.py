"""
Public booking-page services.

Guests reach a host through ``/<username>/<slug>``. This service resolves
the link, gathers a consistent snapshot of the host's rules and meetings, and
delegates the slot computation to the domain-level ``SlotAvailabilityEngine``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

import pendulum
from pendulum import DateTime

from ..domain.entities import Attendee, Meeting, MeetingType, User
from ..domain.exceptions import InvalidInputError, NotFoundError, SlotUnavailableError
from ..domain.models import AvailabilityRule, BookedInterval, Slot
from ..domain.slot_engine import SlotAvailabilityEngine
from ..domain.time_utils import validate_timezone
from .storage import StorageProtocol

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "To be determined"


@dataclass
class BookingPage:
    """Everything a guest sees before picking a slot."""
    host: User
    meeting_type: MeetingType
    availabilities: List[AvailabilityRule]


async def booked_intervals_for_day(
    storage: StorageProtocol, user: User, day: date
) -> List[BookedInterval]:
    """Meetings of ``user`` that overlap ``day`` in the host's timezone."""
    day_start = pendulum.datetime(day.year, day.month, day.day, tz=user.timezone)
    day_end = day_start.add(days=1)

    meetings = await storage.get_meetings_by_user_id(user.id)
    return [
        meeting.as_booked_interval()
        for meeting in meetings
        if meeting.start_time < day_end and meeting.end_time > day_start
    ]


class BookingService:
    """
    Resolves booking links, lists open slots and books them for guests.
    """

    def __init__(
        self,
        storage: StorageProtocol,
        engine: Optional[SlotAvailabilityEngine] = None,
    ) -> None:
        self._storage = storage
        self._engine = engine or SlotAvailabilityEngine()

    async def get_booking_page(self, username: str, slug: str) -> BookingPage:
        """
        Resolve a booking link.

        Raises:
            NotFoundError: If the host or the meeting type doesn't exist
        """
        host, meeting_type = await self._resolve_link(username, slug)
        availabilities = await self._storage.get_availabilities_by_user_id(host.id)
        return BookingPage(host=host, meeting_type=meeting_type, availabilities=availabilities)

    async def available_slots(
        self,
        username: str,
        slug: str,
        day: date,
        timezone: Optional[str] = None,
    ) -> List[Slot]:
        """
        Open slots for a booking link on ``day``.

        Args:
            username: Host username from the link
            slug: Meeting type slug from the link
            day: Calendar day in the host's timezone
            timezone: Zone to express slots in; defaults to the host's
        """
        host, meeting_type = await self._resolve_link(username, slug)
        return await self._slots_for(host, meeting_type, day, timezone or host.timezone)

    async def book(
        self,
        username: str,
        slug: str,
        start_time: DateTime,
        attendees: Sequence[Attendee],
        timezone: str,
    ) -> Meeting:
        """
        Book an open slot as a guest.

        Raises:
            InvalidInputError: If attendees are missing or the timezone is unknown
            NotFoundError: If the booking link doesn't resolve
            SlotUnavailableError: If ``start_time`` is not an open slot
        """
        if not attendees:
            raise InvalidInputError("At least one attendee is required to book a meeting")
        validate_timezone(timezone)

        host, meeting_type = await self._resolve_link(username, slug)
        host_day = start_time.in_timezone(host.timezone).date()

        slots = await self._slots_for(host, meeting_type, host_day, timezone)
        if not any(slot.start == start_time for slot in slots):
            raise SlotUnavailableError(
                f"{start_time.to_iso8601_string()} is not an open slot for {username}/{slug}"
            )

        meeting = await self._storage.create_meeting(
            meeting_type_id=meeting_type.id,
            user_id=host.id,
            title=meeting_type.name,
            start_time=start_time,
            end_time=start_time.add(minutes=meeting_type.duration),
            timezone=timezone,
            location=meeting_type.location or DEFAULT_LOCATION,
            attendees=list(attendees),
            confirmed=True,
        )
        logger.info(
            "Booked meeting %s for %s/%s at %s",
            meeting.id, username, slug, start_time.to_iso8601_string(),
        )
        return meeting

    async def _resolve_link(self, username: str, slug: str) -> tuple[User, MeetingType]:
        host = await self._storage.get_user_by_username(username)
        if host is None:
            raise NotFoundError(f"User not found: {username}")

        meeting_type = await self._storage.get_meeting_type_by_slug(host.id, slug)
        if meeting_type is None:
            raise NotFoundError(f"Meeting type not found: {slug}")

        return host, meeting_type

    async def _slots_for(
        self, host: User, meeting_type: MeetingType, day: date, timezone: str
    ) -> List[Slot]:
        rules = await self._storage.get_availabilities_by_user_id(host.id)
        booked = await booked_intervals_for_day(self._storage, host, day)

        return self._engine.slots_for_day(
            day=day,
            rules=rules,
            booked=booked,
            duration_minutes=meeting_type.duration,
            timezone=timezone,
            host_timezone=host.timezone,
        )
