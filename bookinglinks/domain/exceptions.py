"""
Domain-specific exception hierarchy for the booking links application.
"""


class BookingError(Exception):
    """Base class for all application-level errors."""


class InvalidInputError(BookingError, ValueError):
    """Raised when caller-supplied input violates a contract (bad duration, time, timezone)."""


class NotFoundError(BookingError):
    """Raised when a requested entity does not exist."""


class ForbiddenError(BookingError):
    """Raised when an entity exists but is owned by another user."""


class SlotUnavailableError(BookingError):
    """Raised when a guest tries to book a start time that is not an open slot."""
