"""Models module exporting all database models."""

from .booking import Booking, BookingStatus, PaymentStatus
from .instance import Availability, InstanceStatus, TourInstance
from .tour import Difficulty, Tour, TourStatus, TourWaypoint
from .user import User, UserRole

__all__ = [
    # Accounts
    "User",
    "UserRole",

    # Catalogue
    "Tour",
    "TourStatus",
    "Difficulty",
    "TourWaypoint",
    "TourInstance",
    "InstanceStatus",
    "Availability",

    # Booking entities
    "Booking",
    "BookingStatus",
    "PaymentStatus",
]
