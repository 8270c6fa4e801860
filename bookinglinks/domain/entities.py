"""
Stored entities managed through the storage collaborator.

These mirror the records a host manages from their dashboard: profile,
meeting types, scheduled meetings, calendar connections and onboarding state.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from pendulum import DateTime

from .models import BookedInterval


@dataclass
class User:
    """Host account. Credentials live with the identity provider, not here."""
    id: int
    username: str
    email: str
    name: Optional[str] = None
    timezone: str = "UTC"
    profile_picture: Optional[str] = None
    created_at: Optional[DateTime] = None


@dataclass
class MeetingType:
    """Template guests book against via ``/<username>/<slug>``."""
    id: int
    user_id: int
    name: str
    duration: int  # minutes
    slug: str
    description: Optional[str] = None
    color: str = "#1C4A1C"
    location: Optional[str] = None
    created_at: Optional[DateTime] = None


@dataclass
class Attendee:
    email: str
    name: Optional[str] = None


@dataclass
class Meeting:
    """A scheduled meeting on the host's calendar."""
    id: int
    meeting_type_id: int
    user_id: int
    title: str
    start_time: DateTime
    end_time: DateTime
    timezone: str
    description: Optional[str] = None
    location: Optional[str] = None
    attendees: List[Attendee] = field(default_factory=list)
    confirmed: bool = False
    created_at: Optional[DateTime] = None

    def as_booked_interval(self) -> BookedInterval:
        return BookedInterval(start=self.start_time, end=self.end_time)


@dataclass
class CalendarConnection:
    """Opaque third-party calendar link; no sync happens here."""
    id: int
    user_id: int
    provider: str  # "google", "outlook", "apple"
    token_data: Optional[str] = None
    refresh_token: Optional[str] = None
    connected: bool = True
    created_at: Optional[DateTime] = None


@dataclass
class OnboardingProgress:
    id: int
    user_id: int
    current_step: int = 1
    calendar_connected: bool = False
    availability_set: bool = False
    profile_complete: bool = False
    completed: bool = False
