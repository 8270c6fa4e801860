"""
Host dashboard services.

Every operation takes the acting user's id as ``caller_id``; there is no
ambient session state. Access to a single record goes through
``fetch_owned``, which distinguishes missing records from records owned by
someone else.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, List, Optional

from pendulum import DateTime

from ..domain.entities import (
    CalendarConnection,
    Meeting,
    MeetingType,
    OnboardingProgress,
    User,
)
from ..domain.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from ..domain.models import AvailabilityRule, Slot
from ..domain.slot_engine import SlotAvailabilityEngine
from ..domain.time_utils import time_to_minutes, validate_timezone
from .booking import booked_intervals_for_day
from .storage import StorageProtocol

logger = logging.getLogger(__name__)

# kind -> (storage getter, display name)
_OWNED_KINDS = {
    "availability": ("get_availability", "Availability"),
    "meeting_type": ("get_meeting_type", "Meeting type"),
    "meeting": ("get_meeting", "Meeting"),
    "calendar_connection": ("get_calendar_connection", "Calendar connection"),
}

_ONBOARDING_FLAGS = ("current_step", "calendar_connected", "availability_set", "profile_complete", "completed")


def _validate_window(start_time: str, end_time: str) -> None:
    if time_to_minutes(start_time) >= time_to_minutes(end_time):
        raise InvalidInputError(f"start_time {start_time} must be before end_time {end_time}")


class HostService:
    """
    Owner-scoped operations behind the host's dashboard.
    """

    def __init__(
        self,
        storage: StorageProtocol,
        engine: Optional[SlotAvailabilityEngine] = None,
    ) -> None:
        self._storage = storage
        self._engine = engine or SlotAvailabilityEngine()

    # Ownership

    async def fetch_owned(self, kind: str, entity_id: int, caller_id: int) -> Any:
        """
        Fetch a record the caller owns.

        Args:
            kind: One of ``availability``, ``meeting_type``, ``meeting``,
                ``calendar_connection``
            entity_id: Record id
            caller_id: Acting user's id

        Raises:
            NotFoundError: If the record doesn't exist
            ForbiddenError: If it belongs to another user
        """
        if kind not in _OWNED_KINDS:
            raise InvalidInputError(f"Unknown entity kind: {kind}")

        getter, label = _OWNED_KINDS[kind]
        entity = await getattr(self._storage, getter)(entity_id)

        if entity is None:
            raise NotFoundError(f"{label} not found: {entity_id}")
        if entity.user_id != caller_id:
            raise ForbiddenError(f"{label} {entity_id} belongs to another user")

        return entity

    # Profile

    async def register_user(
        self,
        username: str,
        email: str,
        name: Optional[str] = None,
        timezone: str = "UTC",
    ) -> User:
        """Create a host account and its onboarding record."""
        validate_timezone(timezone)

        if await self._storage.get_user_by_username(username):
            raise InvalidInputError("Username already taken")
        if await self._storage.get_user_by_email(email):
            raise InvalidInputError("Email already registered")

        user = await self._storage.create_user(
            username=username, email=email, name=name, timezone=timezone
        )
        await self._storage.create_onboarding_progress(user_id=user.id, current_step=1)
        logger.info("Registered user %s (%s)", user.id, username)
        return user

    async def get_profile(self, caller_id: int) -> User:
        user = await self._storage.get_user(caller_id)
        if user is None:
            raise NotFoundError(f"User not found: {caller_id}")
        return user

    async def update_profile(self, caller_id: int, **changes: Any) -> User:
        """Update profile fields. The username cannot change here."""
        await self.get_profile(caller_id)
        changes.pop("username", None)
        if "timezone" in changes:
            validate_timezone(changes["timezone"])

        return await self._storage.update_user(caller_id, **changes)

    # Availability

    async def list_availability(self, caller_id: int) -> List[AvailabilityRule]:
        return await self._storage.get_availabilities_by_user_id(caller_id)

    async def add_availability(
        self, caller_id: int, day_of_week: int, start_time: str, end_time: str
    ) -> AvailabilityRule:
        _validate_window(start_time, end_time)
        rule = await self._storage.create_availability(
            user_id=caller_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
        )
        await self._storage.update_onboarding_progress(caller_id, availability_set=True)
        return rule

    async def update_availability(
        self, caller_id: int, availability_id: int, **changes: Any
    ) -> AvailabilityRule:
        existing = await self.fetch_owned("availability", availability_id, caller_id)
        changes.pop("user_id", None)

        _validate_window(
            changes.get("start_time", existing.start_time),
            changes.get("end_time", existing.end_time),
        )
        return await self._storage.update_availability(availability_id, **changes)

    async def remove_availability(self, caller_id: int, availability_id: int) -> None:
        await self.fetch_owned("availability", availability_id, caller_id)
        await self._storage.delete_availability(availability_id)

    # Meeting types

    async def list_meeting_types(self, caller_id: int) -> List[MeetingType]:
        return await self._storage.get_meeting_types_by_user_id(caller_id)

    async def add_meeting_type(
        self, caller_id: int, name: str, duration: int, slug: str, **extra: Any
    ) -> MeetingType:
        self._validate_meeting_type(duration)
        if await self._storage.get_meeting_type_by_slug(caller_id, slug):
            raise InvalidInputError(f"Slug already in use: {slug}")

        extra.pop("user_id", None)
        return await self._storage.create_meeting_type(
            user_id=caller_id, name=name, duration=duration, slug=slug, **extra
        )

    async def update_meeting_type(
        self, caller_id: int, meeting_type_id: int, **changes: Any
    ) -> MeetingType:
        await self.fetch_owned("meeting_type", meeting_type_id, caller_id)
        changes.pop("user_id", None)

        if "duration" in changes:
            self._validate_meeting_type(changes["duration"])
        if "slug" in changes:
            clash = await self._storage.get_meeting_type_by_slug(caller_id, changes["slug"])
            if clash and clash.id != meeting_type_id:
                raise InvalidInputError(f"Slug already in use: {changes['slug']}")

        return await self._storage.update_meeting_type(meeting_type_id, **changes)

    async def remove_meeting_type(self, caller_id: int, meeting_type_id: int) -> None:
        await self.fetch_owned("meeting_type", meeting_type_id, caller_id)
        await self._storage.delete_meeting_type(meeting_type_id)

    @staticmethod
    def _validate_meeting_type(duration: Any) -> None:
        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise InvalidInputError(f"duration must be a positive number of minutes, got {duration!r}")

    # Meetings

    async def list_meetings(self, caller_id: int) -> List[Meeting]:
        return await self._storage.get_meetings_by_user_id(caller_id)

    async def get_meeting(self, caller_id: int, meeting_id: int) -> Meeting:
        return await self.fetch_owned("meeting", meeting_id, caller_id)

    async def schedule_meeting(
        self,
        caller_id: int,
        meeting_type_id: int,
        title: str,
        start_time: DateTime,
        end_time: DateTime,
        timezone: str,
        **extra: Any,
    ) -> Meeting:
        """
        Put a meeting on the caller's calendar directly, without a booking link.

        Raises:
            NotFoundError: If the meeting type doesn't exist
            ForbiddenError: If the meeting type belongs to another user
            InvalidInputError: If the times are inverted or the timezone is unknown
        """
        await self.fetch_owned("meeting_type", meeting_type_id, caller_id)
        validate_timezone(timezone)
        if start_time >= end_time:
            raise InvalidInputError(f"Meeting start {start_time} must be before end {end_time}")

        extra.pop("user_id", None)
        meeting = await self._storage.create_meeting(
            meeting_type_id=meeting_type_id,
            user_id=caller_id,
            title=title,
            start_time=start_time,
            end_time=end_time,
            timezone=timezone,
            **extra,
        )
        logger.info("Scheduled meeting %s for user %s", meeting.id, caller_id)
        return meeting

    async def update_meeting(self, caller_id: int, meeting_id: int, **changes: Any) -> Meeting:
        existing = await self.fetch_owned("meeting", meeting_id, caller_id)
        changes.pop("user_id", None)

        start = changes.get("start_time", existing.start_time)
        end = changes.get("end_time", existing.end_time)
        if start >= end:
            raise InvalidInputError(f"Meeting start {start} must be before end {end}")

        return await self._storage.update_meeting(meeting_id, **changes)

    async def cancel_meeting(self, caller_id: int, meeting_id: int) -> None:
        await self.fetch_owned("meeting", meeting_id, caller_id)
        await self._storage.delete_meeting(meeting_id)
        logger.info("Cancelled meeting %s for user %s", meeting_id, caller_id)

    # Calendar connections

    async def list_calendar_connections(self, caller_id: int) -> List[CalendarConnection]:
        return await self._storage.get_calendar_connections_by_user_id(caller_id)

    async def connect_calendar(
        self,
        caller_id: int,
        provider: str,
        token_data: Optional[str] = None,
        refresh_token: Optional[str] = None,
    ) -> CalendarConnection:
        connection = await self._storage.create_calendar_connection(
            user_id=caller_id,
            provider=provider,
            token_data=token_data,
            refresh_token=refresh_token,
        )
        await self._storage.update_onboarding_progress(caller_id, calendar_connected=True)
        return connection

    async def disconnect_calendar(self, caller_id: int, connection_id: int) -> None:
        await self.fetch_owned("calendar_connection", connection_id, caller_id)
        await self._storage.delete_calendar_connection(connection_id)

    # Onboarding

    async def get_onboarding(self, caller_id: int) -> OnboardingProgress:
        progress = await self._storage.get_onboarding_progress_by_user_id(caller_id)
        if progress is None:
            raise NotFoundError(f"Onboarding progress not found for user {caller_id}")
        return progress

    async def update_onboarding(self, caller_id: int, **changes: Any) -> OnboardingProgress:
        """Update onboarding flags, creating the record on first use."""
        changes = {key: value for key, value in changes.items() if key in _ONBOARDING_FLAGS}

        existing = await self._storage.get_onboarding_progress_by_user_id(caller_id)
        if existing is None:
            return await self._storage.create_onboarding_progress(user_id=caller_id, **changes)

        return await self._storage.update_onboarding_progress(caller_id, **changes)

    # Dashboard slots

    async def own_available_slots(
        self,
        caller_id: int,
        day: date,
        duration_minutes: int,
        timezone: Optional[str] = None,
    ) -> List[Slot]:
        """Open slots on the caller's own calendar for ``day``."""
        user = await self.get_profile(caller_id)
        rules = await self._storage.get_availabilities_by_user_id(caller_id)
        booked = await booked_intervals_for_day(self._storage, user, day)

        return self._engine.slots_for_day(
            day=day,
            rules=rules,
            booked=booked,
            duration_minutes=duration_minutes,
            timezone=timezone or user.timezone,
            host_timezone=user.timezone,
        )
