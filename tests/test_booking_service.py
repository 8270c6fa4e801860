"""
Tests for the public booking-page service.
"""

import asyncio

import pendulum
import pytest

from bookinglinks.adapters.memory_storage import InMemoryStorage
from bookinglinks.domain.entities import Attendee
from bookinglinks.domain.exceptions import InvalidInputError, NotFoundError, SlotUnavailableError
from bookinglinks.services.booking import BookingService

MONDAY = pendulum.date(2024, 11, 25)


async def _seed(storage: InMemoryStorage, timezone: str = "UTC") -> None:
    host = await storage.create_user(username="alex", email="alex@example.com", timezone=timezone)
    await storage.create_availability(user_id=host.id, day_of_week=1, start_time="09:00", end_time="12:00")
    intro = await storage.create_meeting_type(user_id=host.id, name="Intro Call", duration=30, slug="intro-call")
    await storage.create_meeting_type(
        user_id=host.id, name="Deep Dive", duration=60, slug="deep-dive", location="https://meet.example.com/alex"
    )
    await storage.create_meeting(
        meeting_type_id=intro.id,
        user_id=host.id,
        title="Intro Call",
        start_time=pendulum.datetime(2024, 11, 25, 10, 0, tz=timezone),
        end_time=pendulum.datetime(2024, 11, 25, 10, 30, tz=timezone),
        timezone=timezone,
        confirmed=True,
    )
    # Another day must not affect Monday.
    await storage.create_meeting(
        meeting_type_id=intro.id,
        user_id=host.id,
        title="Intro Call",
        start_time=pendulum.datetime(2024, 11, 26, 9, 0, tz=timezone),
        end_time=pendulum.datetime(2024, 11, 26, 9, 30, tz=timezone),
        timezone=timezone,
    )


@pytest.fixture
def storage() -> InMemoryStorage:
    storage = InMemoryStorage()
    asyncio.run(_seed(storage))
    return storage


@pytest.fixture
def service(storage) -> BookingService:
    return BookingService(storage)


def _times(slots):
    return [slot.start.format("HH:mm") for slot in slots]


class TestBookingPage:
    """Tests for resolving booking links."""

    def test_resolves_host_and_meeting_type(self, service):
        page = asyncio.run(service.get_booking_page("alex", "intro-call"))

        assert page.host.username == "alex"
        assert page.meeting_type.duration == 30
        assert [rule.day_of_week for rule in page.availabilities] == [1]

    def test_unknown_host(self, service):
        with pytest.raises(NotFoundError, match="User not found"):
            asyncio.run(service.get_booking_page("nobody", "intro-call"))

    def test_unknown_slug(self, service):
        with pytest.raises(NotFoundError, match="Meeting type not found"):
            asyncio.run(service.get_booking_page("alex", "missing"))


class TestAvailableSlots:
    """Tests for listing slots through a booking link."""

    def test_existing_meeting_is_excluded(self, service):
        slots = asyncio.run(service.available_slots("alex", "intro-call", MONDAY))

        assert _times(slots) == ["09:00", "09:30", "10:30", "11:00", "11:30"]

    def test_meeting_type_duration_is_used(self, service):
        slots = asyncio.run(service.available_slots("alex", "deep-dive", MONDAY))

        assert _times(slots) == ["09:00", "11:00"]
        assert all(slot.duration_minutes == 60 for slot in slots)

    def test_guest_timezone(self, service):
        slots = asyncio.run(service.available_slots("alex", "intro-call", MONDAY, "Europe/Berlin"))

        assert _times(slots)[0] == "10:00"
        assert slots[0].start.timezone_name == "Europe/Berlin"

    def test_day_without_availability(self, service):
        tuesday = pendulum.date(2024, 11, 26)

        assert asyncio.run(service.available_slots("alex", "intro-call", tuesday)) == []

    def test_host_timezone_defines_the_day(self):
        """Meetings are matched against the day in the host's zone."""
        storage = InMemoryStorage()
        asyncio.run(_seed(storage, timezone="America/New_York"))
        service = BookingService(storage)

        slots = asyncio.run(service.available_slots("alex", "intro-call", MONDAY))

        assert "10:00" not in _times(slots)
        assert len(slots) == 5


class TestBook:
    """Tests for guest booking."""

    def test_books_open_slot(self, service, storage):
        start = pendulum.datetime(2024, 11, 25, 9, 0, tz="UTC")

        meeting = asyncio.run(
            service.book("alex", "intro-call", start, [Attendee(email="guest@example.com")], "UTC")
        )

        assert meeting.confirmed is True
        assert meeting.title == "Intro Call"
        assert meeting.end_time == pendulum.datetime(2024, 11, 25, 9, 30, tz="UTC")
        assert meeting.location == "To be determined"
        assert meeting.attendees[0].email == "guest@example.com"

        remaining = asyncio.run(service.available_slots("alex", "intro-call", MONDAY))
        assert "09:00" not in _times(remaining)

    def test_meeting_type_location_is_copied(self, service):
        start = pendulum.datetime(2024, 11, 25, 11, 0, tz="UTC")

        meeting = asyncio.run(
            service.book("alex", "deep-dive", start, [Attendee(email="guest@example.com")], "UTC")
        )

        assert meeting.location == "https://meet.example.com/alex"

    def test_booking_in_guest_timezone(self, service):
        """The same instant expressed in another zone is accepted."""
        start = pendulum.datetime(2024, 11, 25, 10, 30, tz="Europe/Berlin")

        meeting = asyncio.run(
            service.book("alex", "intro-call", start, [Attendee(email="guest@example.com")], "Europe/Berlin")
        )

        assert meeting.start_time == pendulum.datetime(2024, 11, 25, 9, 30, tz="UTC")
        assert meeting.timezone == "Europe/Berlin"

    @pytest.mark.parametrize("hour,minute", [(10, 0), (9, 10), (12, 0), (8, 30)])
    def test_rejects_unavailable_start(self, service, hour, minute):
        start = pendulum.datetime(2024, 11, 25, hour, minute, tz="UTC")

        with pytest.raises(SlotUnavailableError):
            asyncio.run(service.book("alex", "intro-call", start, [Attendee(email="g@example.com")], "UTC"))

    def test_double_booking_is_rejected(self, service):
        start = pendulum.datetime(2024, 11, 25, 11, 0, tz="UTC")
        guest = [Attendee(email="guest@example.com")]

        asyncio.run(service.book("alex", "intro-call", start, guest, "UTC"))

        with pytest.raises(SlotUnavailableError):
            asyncio.run(service.book("alex", "intro-call", start, guest, "UTC"))

    def test_requires_attendees(self, service):
        start = pendulum.datetime(2024, 11, 25, 9, 0, tz="UTC")

        with pytest.raises(InvalidInputError, match="attendee"):
            asyncio.run(service.book("alex", "intro-call", start, [], "UTC"))

    def test_rejects_unknown_timezone(self, service):
        start = pendulum.datetime(2024, 11, 25, 9, 0, tz="UTC")

        with pytest.raises(InvalidInputError):
            asyncio.run(service.book("alex", "intro-call", start, [Attendee(email="g@example.com")], "Bad/Zone"))
