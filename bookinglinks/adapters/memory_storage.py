"""
In-memory implementation of the storage collaborator.

Used by the CLI (fed from a fixture file) and by tests. Data is lost when
the process exits.
"""

import dataclasses
from typing import Any, Callable, Dict, Generic, List, Optional, Type, TypeVar

import pendulum

from ..domain.entities import (
    CalendarConnection,
    Meeting,
    MeetingType,
    OnboardingProgress,
    User,
)
from ..domain.models import AvailabilityRule

T = TypeVar("T")


class _Table(Generic[T]):
    """Auto-incrementing id -> record map for one entity type."""

    def __init__(self, record_type: Type[T]):
        self.record_type = record_type
        self.rows: Dict[int, T] = {}
        self._next_id = 1

    def insert(self, **fields: Any) -> T:
        fields.pop("id", None)
        if "created_at" in {f.name for f in dataclasses.fields(self.record_type)}:
            fields.setdefault("created_at", pendulum.now("UTC"))

        record = self.record_type(id=self._next_id, **fields)
        self.rows[self._next_id] = record
        self._next_id += 1
        return record

    def update(self, record_id: int, **changes: Any) -> Optional[T]:
        existing = self.rows.get(record_id)
        if existing is None:
            return None

        changes.pop("id", None)
        updated = dataclasses.replace(existing, **changes)
        self.rows[record_id] = updated
        return updated

    def delete(self, record_id: int) -> bool:
        return self.rows.pop(record_id, None) is not None

    def find(self, predicate: Callable[[T], bool]) -> List[T]:
        return [row for row in self.rows.values() if predicate(row)]


class InMemoryStorage:
    """Dictionary-backed storage satisfying ``StorageProtocol``."""

    def __init__(self) -> None:
        self._users: _Table[User] = _Table(User)
        self._availabilities: _Table[AvailabilityRule] = _Table(AvailabilityRule)
        self._connections: _Table[CalendarConnection] = _Table(CalendarConnection)
        self._meeting_types: _Table[MeetingType] = _Table(MeetingType)
        self._meetings: _Table[Meeting] = _Table(Meeting)
        self._onboarding: _Table[OnboardingProgress] = _Table(OnboardingProgress)

    # Users

    async def get_user(self, user_id: int) -> Optional[User]:
        return self._users.rows.get(user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        matches = self._users.find(lambda u: u.username == username)
        return matches[0] if matches else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        matches = self._users.find(lambda u: u.email.lower() == email.lower())
        return matches[0] if matches else None

    async def create_user(self, **fields: Any) -> User:
        return self._users.insert(**fields)

    async def update_user(self, user_id: int, **changes: Any) -> Optional[User]:
        return self._users.update(user_id, **changes)

    # Availability

    async def get_availability(self, availability_id: int) -> Optional[AvailabilityRule]:
        return self._availabilities.rows.get(availability_id)

    async def get_availabilities_by_user_id(self, user_id: int) -> List[AvailabilityRule]:
        return self._availabilities.find(lambda a: a.user_id == user_id)

    async def create_availability(self, **fields: Any) -> AvailabilityRule:
        return self._availabilities.insert(**fields)

    async def update_availability(
        self, availability_id: int, **changes: Any
    ) -> Optional[AvailabilityRule]:
        return self._availabilities.update(availability_id, **changes)

    async def delete_availability(self, availability_id: int) -> bool:
        return self._availabilities.delete(availability_id)

    # Calendar connections

    async def get_calendar_connection(self, connection_id: int) -> Optional[CalendarConnection]:
        return self._connections.rows.get(connection_id)

    async def get_calendar_connections_by_user_id(self, user_id: int) -> List[CalendarConnection]:
        return self._connections.find(lambda c: c.user_id == user_id)

    async def create_calendar_connection(self, **fields: Any) -> CalendarConnection:
        return self._connections.insert(**fields)

    async def update_calendar_connection(
        self, connection_id: int, **changes: Any
    ) -> Optional[CalendarConnection]:
        return self._connections.update(connection_id, **changes)

    async def delete_calendar_connection(self, connection_id: int) -> bool:
        return self._connections.delete(connection_id)

    # Meeting types

    async def get_meeting_type(self, meeting_type_id: int) -> Optional[MeetingType]:
        return self._meeting_types.rows.get(meeting_type_id)

    async def get_meeting_types_by_user_id(self, user_id: int) -> List[MeetingType]:
        return self._meeting_types.find(lambda m: m.user_id == user_id)

    async def get_meeting_type_by_slug(self, user_id: int, slug: str) -> Optional[MeetingType]:
        matches = self._meeting_types.find(lambda m: m.user_id == user_id and m.slug == slug)
        return matches[0] if matches else None

    async def create_meeting_type(self, **fields: Any) -> MeetingType:
        return self._meeting_types.insert(**fields)

    async def update_meeting_type(
        self, meeting_type_id: int, **changes: Any
    ) -> Optional[MeetingType]:
        return self._meeting_types.update(meeting_type_id, **changes)

    async def delete_meeting_type(self, meeting_type_id: int) -> bool:
        return self._meeting_types.delete(meeting_type_id)

    # Meetings

    async def get_meeting(self, meeting_id: int) -> Optional[Meeting]:
        return self._meetings.rows.get(meeting_id)

    async def get_meetings_by_user_id(self, user_id: int) -> List[Meeting]:
        meetings = self._meetings.find(lambda m: m.user_id == user_id)
        return sorted(meetings, key=lambda m: m.start_time)

    async def create_meeting(self, **fields: Any) -> Meeting:
        return self._meetings.insert(**fields)

    async def update_meeting(self, meeting_id: int, **changes: Any) -> Optional[Meeting]:
        return self._meetings.update(meeting_id, **changes)

    async def delete_meeting(self, meeting_id: int) -> bool:
        return self._meetings.delete(meeting_id)

    # Onboarding

    async def get_onboarding_progress_by_user_id(self, user_id: int) -> Optional[OnboardingProgress]:
        matches = self._onboarding.find(lambda p: p.user_id == user_id)
        return matches[0] if matches else None

    async def create_onboarding_progress(self, **fields: Any) -> OnboardingProgress:
        return self._onboarding.insert(**fields)

    async def update_onboarding_progress(
        self, user_id: int, **changes: Any
    ) -> Optional[OnboardingProgress]:
        progress = await self.get_onboarding_progress_by_user_id(user_id)
        if progress is None:
            return None
        changes.pop("user_id", None)
        return self._onboarding.update(progress.id, **changes)
