"""Booking router for customer bookings."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_optional_user
from ..core.exceptions import APIException, InternalServerError
from ..models.booking import Booking as BookingModel
from ..models.user import User
from ..schemas.booking import Booking, CreateBookingRequest, CreateBookingResponse
from ..schemas.common import Money
from ..services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["bookings"])

DB_DEPENDENCY = Depends(get_db)
OPTIONAL_USER_DEPENDENCY = Depends(get_optional_user)


def convert_booking_to_schema(booking_model: BookingModel) -> Booking:
    """Convert booking model to schema."""
    currency = booking_model.price_currency
    return Booking(
        id=str(booking_model.id),
        booking_reference=booking_model.booking_reference,
        tour_instance_id=str(booking_model.tour_instance_id),
        customer_id=str(booking_model.customer_id) if booking_model.customer_id else None,
        lead_participant_name=booking_model.lead_participant_name,
        lead_participant_email=booking_model.lead_participant_email,
        lead_participant_phone=booking_model.lead_participant_phone,
        participant_count=booking_model.participant_count,
        base_price=Money(amount=booking_model.base_price_amount, currency=currency),
        total=Money(amount=booking_model.total_amount, currency=currency),
        special_requests=booking_model.special_requests,
        dietary_restrictions=booking_model.dietary_restrictions,
        booking_status=booking_model.booking_status,
        payment_status=booking_model.payment_status,
        cancelled_at=booking_model.cancelled_at,
        cancelled_by=booking_model.cancelled_by,
        cancellation_reason=booking_model.cancellation_reason,
        refund_amount=booking_model.refund_amount,
        refunded_at=booking_model.refunded_at,
        expires_at=booking_model.expires_at,
        created_at=booking_model.created_at
    )


@router.post("", response_model=CreateBookingResponse, status_code=201)
async def create_booking(
    request: CreateBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: Optional[User] = OPTIONAL_USER_DEPENDENCY
) -> JSONResponse:
    """
    Book spots on a tour instance.

    Guests may book without signing in; they are matched to a customer
    account by email. The booking starts as ``pending_payment`` and
    expires if it is not paid in time.
    """
    booking_service = BookingService(db)

    try:
        booking = await booking_service.create_booking(request, user)
        response_data = CreateBookingResponse(booking=convert_booking_to_schema(booking))

        return JSONResponse(
            status_code=201,
            content=response_data.model_dump(mode="json")
        )

    except APIException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking creation",
            extra={
                "tour_instance_id": request.tour_instance_id,
                "participant_count": request.participant_count,
                "error": str(e)
            },
            exc_info=True
        )
        raise InternalServerError()
