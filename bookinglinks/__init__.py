"""
Booking links: weekly availability, shareable meeting types and guest self-booking.
"""

__version__ = "0.1.0"
