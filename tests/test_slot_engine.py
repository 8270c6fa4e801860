"""
Tests for the slot availability engine.
"""

import pendulum
import pytest

from bookinglinks.domain.exceptions import InvalidInputError
from bookinglinks.domain.models import AvailabilityRule, BookedInterval, Slot, SlotRequest
from bookinglinks.domain.slot_engine import SlotAvailabilityEngine, compute_available_slots

MONDAY = pendulum.date(2024, 11, 25)
TUESDAY = pendulum.date(2024, 11, 26)


def _booked(start: str, end: str, tz: str = "UTC") -> BookedInterval:
    return BookedInterval(
        start=pendulum.parse(f"2024-11-25 {start}", tz=tz),
        end=pendulum.parse(f"2024-11-25 {end}", tz=tz),
    )


def _request(start_time="09:00", end_time="17:00", booked=(), duration=30, **kwargs) -> SlotRequest:
    return SlotRequest(
        date=kwargs.pop("date", MONDAY),
        rule=AvailabilityRule(day_of_week=1, start_time=start_time, end_time=end_time),
        booked=tuple(booked),
        duration_minutes=duration,
        **kwargs,
    )


def _times(slots):
    return [slot.start.format("HH:mm") for slot in slots]


class TestSlotAvailabilityEngine:
    """Tests for SlotAvailabilityEngine."""

    def test_full_day_without_bookings(self):
        """Monday 09:00-17:00 at 30 minutes yields 16 back-to-back slots."""
        slots = compute_available_slots(_request())

        assert len(slots) == 16
        assert _times(slots)[0] == "09:00"
        assert _times(slots)[1] == "09:30"
        assert _times(slots)[-1] == "16:30"

    def test_booked_slot_is_excluded(self):
        """A booking at 10:00-10:30 removes exactly that slot."""
        slots = compute_available_slots(_request(booked=[_booked("10:00", "10:30")]))

        assert len(slots) == 15
        assert "10:00" not in _times(slots)
        assert "09:30" in _times(slots)
        assert "10:30" in _times(slots)

    def test_straddling_booking_blocks_both_slots(self):
        """09:15-09:45 overlaps both 09:00 and 09:30 candidates."""
        slots = compute_available_slots(
            _request(start_time="09:00", end_time="10:00", booked=[_booked("09:15", "09:45")])
        )

        assert slots == []

    def test_no_rule_for_day(self):
        """No rule for Tuesday means no slots, whatever is booked."""
        request = SlotRequest(
            date=TUESDAY,
            rule=None,
            booked=(_booked("10:00", "10:30"),),
            duration_minutes=30,
        )

        assert compute_available_slots(request) == []

    def test_window_shorter_than_duration(self):
        """09:00-09:20 cannot fit a 30 minute meeting."""
        assert compute_available_slots(_request(start_time="09:00", end_time="09:20")) == []

    def test_window_equal_to_duration(self):
        """An exact fit yields one slot."""
        slots = compute_available_slots(_request(start_time="09:00", end_time="09:30"))

        assert _times(slots) == ["09:00"]

    def test_inverted_window_yields_nothing(self):
        """start_time after end_time is a degenerate window, not an error."""
        assert compute_available_slots(_request(start_time="17:00", end_time="09:00")) == []

    def test_partial_last_slot_is_dropped(self):
        """The remainder shorter than the duration is not offered."""
        slots = compute_available_slots(_request(start_time="09:00", end_time="10:40", duration=45))

        assert _times(slots) == ["09:00", "09:45"]

    @pytest.mark.parametrize("duration", [0, -30])
    def test_non_positive_duration_raises(self, duration):
        """A non-positive duration is a contract violation, not 'no availability'."""
        with pytest.raises(InvalidInputError, match="duration_minutes"):
            compute_available_slots(_request(duration=duration))

    def test_non_positive_duration_raises_without_rule(self):
        """Duration is validated even when no rule applies."""
        request = SlotRequest(date=TUESDAY, rule=None, duration_minutes=0)

        with pytest.raises(InvalidInputError):
            compute_available_slots(request)

    @pytest.mark.parametrize("start_time,end_time", [("9am", "17:00"), ("09:00", "25:00"), ("", "17:00")])
    def test_malformed_rule_times_raise(self, start_time, end_time):
        """Malformed HH:MM strings surface as invalid input."""
        with pytest.raises(InvalidInputError):
            compute_available_slots(_request(start_time=start_time, end_time=end_time))

    def test_unknown_timezone_raises(self):
        with pytest.raises(InvalidInputError, match="Unknown timezone"):
            compute_available_slots(_request(timezone="Nowhere/Special"))

    def test_rule_for_other_weekday_raises(self):
        """A Monday rule passed for a Tuesday date violates the request contract."""
        with pytest.raises(InvalidInputError, match="does not apply"):
            compute_available_slots(_request(date=TUESDAY))

    def test_booking_inside_larger_slot_blocks_it(self):
        """A short booking fully inside a long slot still blocks the slot."""
        slots = compute_available_slots(
            _request(start_time="09:00", end_time="11:00", duration=60, booked=[_booked("09:15", "09:30")])
        )

        assert _times(slots) == ["10:00"]

    def test_booking_covering_slot_blocks_it(self):
        slots = compute_available_slots(
            _request(start_time="09:00", end_time="10:00", booked=[_booked("08:00", "12:00")])
        )

        assert slots == []

    def test_adjacent_bookings_do_not_block(self):
        """Bookings ending at a slot's start or starting at its end leave it free."""
        slots = compute_available_slots(
            _request(
                start_time="09:00",
                end_time="11:00",
                duration=60,
                booked=[_booked("08:00", "09:00"), _booked("10:00", "10:30")],
            )
        )

        assert _times(slots) == ["09:00"]

    def test_overlapping_bookings_are_tolerated(self):
        """Mutually overlapping bookings are each checked independently."""
        slots = compute_available_slots(
            _request(
                start_time="09:00",
                end_time="11:00",
                booked=[_booked("09:00", "10:00"), _booked("09:30", "10:15")],
            )
        )

        assert _times(slots) == ["10:30"]

    def test_host_timezone_is_converted_for_output(self):
        """Rules are read in the host zone; slots are expressed in the requested zone."""
        slots = compute_available_slots(
            _request(
                start_time="09:00",
                end_time="10:00",
                timezone="America/New_York",
                host_timezone="Europe/Berlin",
            )
        )

        assert _times(slots) == ["03:00", "03:30"]
        assert slots[0].start.timezone_name == "America/New_York"
        assert slots[0].start == pendulum.datetime(2024, 11, 25, 8, 0, tz="UTC")

    def test_bookings_in_other_timezones_are_compared_as_instants(self):
        """A UTC booking blocks the matching Berlin wall-clock slot."""
        slots = compute_available_slots(
            _request(
                start_time="09:00",
                end_time="10:00",
                timezone="Europe/Berlin",
                booked=[_booked("08:00", "08:30", tz="UTC")],
            )
        )

        assert _times(slots) == ["09:30"]


class TestSlotProperties:
    """Invariants that hold for any valid request."""

    @pytest.mark.parametrize("duration", [15, 20, 30, 45, 60, 90, 480])
    def test_slots_stay_inside_window_and_avoid_bookings(self, duration):
        booked = [_booked("10:10", "10:40"), _booked("13:00", "14:30")]
        request = _request(duration=duration, booked=booked)
        window_start = pendulum.datetime(2024, 11, 25, 9, 0, tz="UTC")
        window_end = pendulum.datetime(2024, 11, 25, 17, 0, tz="UTC")

        slots = compute_available_slots(request)

        for slot in slots:
            assert window_start <= slot.start
            assert slot.end <= window_end
            for interval in booked:
                assert slot.end <= interval.start or slot.start >= interval.end

    def test_slots_are_strictly_increasing(self):
        slots = compute_available_slots(_request(duration=20, booked=[_booked("11:00", "12:00")]))

        starts = [slot.start for slot in slots]
        assert all(earlier < later for earlier, later in zip(starts, starts[1:]))

    def test_dst_gap_times_are_skipped(self):
        """Berlin jumps from 02:00 to 03:00 on 2026-03-29; nothing starts in the gap."""
        request = SlotRequest(
            date=pendulum.date(2026, 3, 29),
            rule=AvailabilityRule(day_of_week=0, start_time="01:00", end_time="04:00"),
            duration_minutes=30,
            timezone="Europe/Berlin",
        )
        window_end = pendulum.datetime(2026, 3, 29, 4, 0, tz="Europe/Berlin")

        slots = compute_available_slots(request)

        assert [slot.to_iso8601() for slot in slots] == [
            "2026-03-29T01:00:00+01:00",
            "2026-03-29T01:30:00+01:00",
            "2026-03-29T03:00:00+02:00",
            "2026-03-29T03:30:00+02:00",
        ]
        for earlier, later in zip(slots, slots[1:]):
            assert earlier.end <= later.start
        assert slots[-1].end <= window_end

    def test_identical_inputs_give_identical_output(self):
        request = _request(booked=[_booked("10:00", "10:30")])
        engine = SlotAvailabilityEngine()

        assert engine.compute_available_slots(request) == engine.compute_available_slots(request)


class TestConflicts:
    """Each overlap branch on its own."""

    slot = Slot(start=pendulum.datetime(2024, 11, 25, 9, 0, tz="UTC"), duration_minutes=60)

    @pytest.mark.parametrize(
        "start,end,expected",
        [
            ("09:30", "10:30", True),   # starts inside
            ("08:30", "09:30", True),   # ends inside
            ("08:00", "11:00", True),   # covers slot
            ("09:15", "09:45", True),   # inside slot
            ("09:00", "10:00", True),   # identical
            ("08:00", "09:00", False),  # ends at slot start
            ("10:00", "11:00", False),  # starts at slot end
            ("11:00", "12:00", False),
        ],
    )
    def test_conflicts(self, start, end, expected):
        assert SlotAvailabilityEngine.conflicts(self.slot, _booked(start, end)) is expected


class TestRuleLookup:
    """Tests for picking a rule by weekday."""

    def test_first_matching_rule_wins(self):
        rules = [
            AvailabilityRule(day_of_week=2, start_time="08:00", end_time="09:00"),
            AvailabilityRule(day_of_week=1, start_time="09:00", end_time="10:00"),
            AvailabilityRule(day_of_week=1, start_time="13:00", end_time="14:00"),
        ]

        rule = SlotAvailabilityEngine.find_rule(rules, MONDAY)

        assert rule.start_time == "09:00"

    def test_no_fallback_to_adjacent_days(self):
        rules = [AvailabilityRule(day_of_week=1, start_time="09:00", end_time="10:00")]

        assert SlotAvailabilityEngine.find_rule(rules, TUESDAY) is None

    def test_slots_for_day(self):
        rules = [
            AvailabilityRule(day_of_week=1, start_time="09:00", end_time="10:00"),
            AvailabilityRule(day_of_week=2, start_time="14:00", end_time="15:00"),
        ]
        engine = SlotAvailabilityEngine()

        monday = engine.slots_for_day(MONDAY, rules, [], duration_minutes=30)
        tuesday = engine.slots_for_day(TUESDAY, rules, [], duration_minutes=60)

        assert _times(monday) == ["09:00", "09:30"]
        assert _times(tuesday) == ["14:00"]
