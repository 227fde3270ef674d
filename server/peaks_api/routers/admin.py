"""Admin router for booking management."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import require_admin
from ..core.exceptions import APIException, InternalServerError
from ..models.booking import BookingStatus
from ..models.user import User
from ..schemas.booking import Booking, BookingListResponse, UpdateBookingRequest
from ..services.booking_service import BookingService
from .bookings import convert_booking_to_schema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/bookings", tags=["admin"])

DB_DEPENDENCY = Depends(get_db)
ADMIN_DEPENDENCY = Depends(require_admin)


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    status: Optional[BookingStatus] = Query(None, description="Filter by booking status"),
    search: Optional[str] = Query(None, max_length=200, description="Reference, lead name or email"),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY
) -> JSONResponse:
    """Search bookings, newest first."""
    booking_service = BookingService(db)

    try:
        bookings, total = await booking_service.list_bookings(
            status=status.value if status else None,
            search=search,
            limit=limit
        )
        response_data = BookingListResponse(
            items=[convert_booking_to_schema(b) for b in bookings],
            total=total
        )
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except APIException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error listing bookings",
            extra={"error": str(e)},
            exc_info=True
        )
        raise InternalServerError()


@router.get("/{booking_id}", response_model=Booking)
async def get_booking(
    booking_id: UUID,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY
) -> JSONResponse:
    booking_service = BookingService(db)

    try:
        booking = await booking_service.get_booking_by_id_or_raise(booking_id)
        return JSONResponse(
            status_code=200,
            content=convert_booking_to_schema(booking).model_dump(mode="json")
        )

    except APIException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error getting booking",
            extra={"booking_id": str(booking_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError()


@router.patch("/{booking_id}", response_model=Booking)
async def update_booking(
    booking_id: UUID,
    request: UpdateBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    admin: User = ADMIN_DEPENDENCY
) -> JSONResponse:
    """
    Update booking status, payment and refund fields.

    Setting ``booking_status`` to ``cancelled`` releases the booked spots.
    """
    booking_service = BookingService(db)

    try:
        booking = await booking_service.get_booking_by_id_or_raise(booking_id)
        booking = await booking_service.update_booking(booking, request)

        logger.info(
            "Booking updated by admin",
            extra={"booking_id": str(booking_id), "admin_id": str(admin.id)}
        )

        return JSONResponse(
            status_code=200,
            content=convert_booking_to_schema(booking).model_dump(mode="json")
        )

    except APIException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error updating booking",
            extra={"booking_id": str(booking_id), "error": str(e)},
            exc_info=True
        )
        raise InternalServerError()
