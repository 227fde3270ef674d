"""Service layer package."""

from .booking_service import BookingService
from .instance_service import InstanceService
from .route_service import RouteService
from .tour_service import TourService

__all__ = [
    "BookingService",
    "InstanceService",
    "RouteService",
    "TourService",
]
