"""Tour instance model definition."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base

if TYPE_CHECKING:
    from .booking import Booking
    from .tour import Tour

LIMITED_SPOTS_THRESHOLD = 3


class InstanceStatus(str, Enum):
    """Tour instance status enumeration."""
    SCHEDULED = "scheduled"
    FULL = "full"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Availability(str, Enum):
    """Availability label shown next to a scheduled date."""
    AVAILABLE = "available"
    LIMITED = "limited"
    FULL = "full"
    CANCELLED = "cancelled"


def remaining_spots(capacity_max: int, capacity_booked: int) -> int:
    return max(capacity_max - capacity_booked, 0)


def availability_for(status: str, remaining: int) -> Availability:
    if status == InstanceStatus.CANCELLED:
        return Availability.CANCELLED
    if remaining <= 0:
        return Availability.FULL
    if remaining <= LIMITED_SPOTS_THRESHOLD:
        return Availability.LIMITED
    return Availability.AVAILABLE


class TourInstance(Base):
    """A scheduled occurrence of a tour with its own capacity counters."""

    __tablename__ = "tour_instances"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )

    tour_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tours.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    guide_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    start_datetime: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    end_datetime: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    capacity_max: Mapped[int] = mapped_column(Integer, nullable=False)
    capacity_booked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Optional per-date price (minor units); the tour base price applies otherwise
    price_override_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)

    status: Mapped[InstanceStatus] = mapped_column(
        String(20),
        nullable=False,
        default=InstanceStatus.SCHEDULED,
        index=True
    )
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

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
        CheckConstraint("capacity_max > 0", name="ck_instance_capacity_max_positive"),
        CheckConstraint("capacity_booked >= 0", name="ck_instance_capacity_booked_non_negative"),
        CheckConstraint("capacity_booked <= capacity_max", name="ck_instance_capacity_booked_lte_max"),
        CheckConstraint(
            "price_override_amount IS NULL OR price_override_amount >= 0",
            name="ck_instance_price_override_non_negative"
        ),
    )

    # Relationships
    tour: Mapped["Tour"] = relationship("Tour", back_populates="instances")
    bookings: Mapped[list["Booking"]] = relationship(
        "Booking",
        back_populates="tour_instance",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    @property
    def spots_left(self) -> int:
        return remaining_spots(self.capacity_max, self.capacity_booked)

    @property
    def availability(self) -> Availability:
        return availability_for(self.status, self.spots_left)

    def __repr__(self) -> str:
        return (
            f"<TourInstance(id={self.id}, tour_id={self.tour_id}, "
            f"start={self.start_datetime}, booked={self.capacity_booked}/{self.capacity_max})>"
        )
