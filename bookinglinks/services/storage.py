"""
Storage collaborator contract.

Services depend on this protocol only; the in-memory adapter implements it
for tests and the CLI, and a database-backed adapter can be swapped in.
"""

from __future__ import annotations

from typing import Any, List, Optional, Protocol

from ..domain.entities import (
    CalendarConnection,
    Meeting,
    MeetingType,
    OnboardingProgress,
    User,
)
from ..domain.models import AvailabilityRule


class StorageProtocol(Protocol):
    """Async CRUD operations the services need from persistent storage."""

    # Users
    async def get_user(self, user_id: int) -> Optional[User]: ...

    async def get_user_by_username(self, username: str) -> Optional[User]: ...

    async def get_user_by_email(self, email: str) -> Optional[User]: ...

    async def create_user(self, **fields: Any) -> User: ...

    async def update_user(self, user_id: int, **changes: Any) -> Optional[User]: ...

    # Availability
    async def get_availability(self, availability_id: int) -> Optional[AvailabilityRule]: ...

    async def get_availabilities_by_user_id(self, user_id: int) -> List[AvailabilityRule]: ...

    async def create_availability(self, **fields: Any) -> AvailabilityRule: ...

    async def update_availability(
        self, availability_id: int, **changes: Any
    ) -> Optional[AvailabilityRule]: ...

    async def delete_availability(self, availability_id: int) -> bool: ...

    # Calendar connections
    async def get_calendar_connection(self, connection_id: int) -> Optional[CalendarConnection]: ...

    async def get_calendar_connections_by_user_id(self, user_id: int) -> List[CalendarConnection]: ...

    async def create_calendar_connection(self, **fields: Any) -> CalendarConnection: ...

    async def update_calendar_connection(
        self, connection_id: int, **changes: Any
    ) -> Optional[CalendarConnection]: ...

    async def delete_calendar_connection(self, connection_id: int) -> bool: ...

    # Meeting types
    async def get_meeting_type(self, meeting_type_id: int) -> Optional[MeetingType]: ...

    async def get_meeting_types_by_user_id(self, user_id: int) -> List[MeetingType]: ...

    async def get_meeting_type_by_slug(self, user_id: int, slug: str) -> Optional[MeetingType]: ...

    async def create_meeting_type(self, **fields: Any) -> MeetingType: ...

    async def update_meeting_type(
        self, meeting_type_id: int, **changes: Any
    ) -> Optional[MeetingType]: ...

    async def delete_meeting_type(self, meeting_type_id: int) -> bool: ...

    # Meetings
    async def get_meeting(self, meeting_id: int) -> Optional[Meeting]: ...

    async def get_meetings_by_user_id(self, user_id: int) -> List[Meeting]: ...

    async def create_meeting(self, **fields: Any) -> Meeting: ...

    async def update_meeting(self, meeting_id: int, **changes: Any) -> Optional[Meeting]: ...

    async def delete_meeting(self, meeting_id: int) -> bool: ...

    # Onboarding
    async def get_onboarding_progress_by_user_id(self, user_id: int) -> Optional[OnboardingProgress]: ...

    async def create_onboarding_progress(self, **fields: Any) -> OnboardingProgress: ...

    async def update_onboarding_progress(
        self, user_id: int, **changes: Any
    ) -> Optional[OnboardingProgress]: ...
