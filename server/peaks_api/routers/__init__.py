"""FastAPI routers package."""

from .admin import router as admin_router
from .bookings import router as booking_router
from .health import router as health_router
from .map import router as map_router
from .metrics import router as metrics_router
from .operator import router as operator_router
from .tours import router as tour_router

__all__ = [
    "admin_router",
    "booking_router",
    "health_router",
    "map_router",
    "metrics_router",
    "operator_router",
    "tour_router",
]
