"""Booking model definition."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .instance import TourInstance
    from .user import User


class BookingStatus(str, Enum):
    """Booking status enumeration."""
    PENDING_PAYMENT = "pending_payment"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class PaymentStatus(str, Enum):
    """Payment status enumeration."""
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    PARTIALLY_REFUNDED = "partially_refunded"
    FAILED = "failed"


class Booking(Base):
    """Booking entity: a customer's reserved spots on a tour instance."""

    __tablename__ = "bookings"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )

    # Human-facing reference, e.g. PP-7K2M9Q
    booking_reference: Mapped[str] = mapped_column(String(16), nullable=False, unique=True, index=True)

    tour_instance_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tour_instances.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    customer_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Lead participant
    lead_participant_name: Mapped[str] = mapped_column(String(200), nullable=False)
    lead_participant_email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    lead_participant_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    participant_count: Mapped[int] = mapped_column(Integer, nullable=False)

    # Price information (stored as minor units, e.g., cents)
    base_price_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    price_currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")

    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
    dietary_restrictions: Mapped[str | None] = mapped_column(Text, nullable=True)

    booking_status: Mapped[BookingStatus] = mapped_column(
        String(20),
        nullable=False,
        default=BookingStatus.PENDING_PAYMENT,
        index=True
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentStatus.PENDING,
        index=True
    )

    # Cancellation and refund
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    cancelled_by: Mapped[str | None] = mapped_column(String(50), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    refund_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)
    refunded_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    expires_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("participant_count > 0", name="ck_booking_participants_positive"),
        CheckConstraint("total_amount >= 0", name="ck_booking_total_non_negative"),
        CheckConstraint("length(booking_reference) > 0", name="ck_booking_reference_not_empty"),
        CheckConstraint(
            "refund_amount IS NULL OR refund_amount >= 0",
            name="ck_booking_refund_non_negative"
        ),
    )

    # Relationships
    tour_instance: Mapped["TourInstance"] = relationship("TourInstance", back_populates="bookings")
    customer: Mapped["User | None"] = relationship("User", back_populates="bookings")

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, reference='{self.booking_reference}', "
            f"participants={self.participant_count}, status={self.booking_status})>"
        )
