"""
Service layer helpers that orchestrate storage and domain logic.
"""

from .booking import BookingPage, BookingService
from .host import HostService
from .storage import StorageProtocol

__all__ = ["BookingPage", "BookingService", "HostService", "StorageProtocol"]
