"""Booking-related Pydantic schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..models.booking import BookingStatus, PaymentStatus
from .common import Money

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class CreateBookingRequest(BaseModel):
    """Request schema for booking spots on a tour instance."""

    tour_instance_id: str = Field(..., description="Tour instance to book")
    participant_count: int = Field(..., description="Number of participants")
    lead_participant_name: str = Field(..., min_length=1, max_length=200)
    lead_participant_email: str = Field(..., max_length=320, pattern=EMAIL_PATTERN)
    lead_participant_phone: str = Field(..., min_length=1, max_length=50)
    special_requests: Optional[str] = Field(None, max_length=2000)
    dietary_restrictions: Optional[str] = Field(None, max_length=2000)


class UpdateBookingRequest(BaseModel):
    """Admin update of a booking; only fields present are applied."""

    booking_status: Optional[BookingStatus] = None
    payment_status: Optional[PaymentStatus] = None
    cancellation_reason: Optional[str] = Field(None, max_length=2000)
    refund_amount: Optional[int] = Field(None, ge=0, description="Refund in minor units")
    refunded_at: Optional[datetime] = None
    special_requests: Optional[str] = Field(None, max_length=2000)


class Booking(BaseModel):
    """Booking response schema."""

    id: str = Field(..., description="Unique booking ID")
    booking_reference: str = Field(..., description="Reference shown to the customer")
    tour_instance_id: str
    customer_id: Optional[str] = None
    lead_participant_name: str
    lead_participant_email: str
    lead_participant_phone: Optional[str] = None
    participant_count: int = Field(..., ge=1)
    base_price: Money = Field(..., description="Price per person")
    total: Money
    special_requests: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    booking_status: BookingStatus
    payment_status: PaymentStatus
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    refund_amount: Optional[int] = None
    refunded_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: datetime


class BookingListResponse(BaseModel):
    """Response schema for admin booking search."""

    items: list[Booking]
    total: int = Field(..., ge=0)


class CreateBookingResponse(BaseModel):
    """Response schema for a newly created booking."""

    booking: Booking
    message: str = "Booking created successfully"
