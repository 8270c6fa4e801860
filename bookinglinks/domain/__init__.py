"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import (
    BookingError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    SlotUnavailableError,
)
from .models import AvailabilityRule, BookedInterval, Slot, SlotRequest, TimeRange
from .slot_engine import SlotAvailabilityEngine, compute_available_slots

__all__ = [
    "AvailabilityRule",
    "BookedInterval",
    "BookingError",
    "ForbiddenError",
    "InvalidInputError",
    "NotFoundError",
    "Slot",
    "SlotAvailabilityEngine",
    "SlotRequest",
    "SlotUnavailableError",
    "TimeRange",
    "compute_available_slots",
]
