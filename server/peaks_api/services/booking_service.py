"""Booking service for business logic operations."""

import logging
import secrets
from datetime import timedelta
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import to_naive_utc, utcnow
from ..core.exceptions import ConflictError, InsufficientCapacityError, NotFoundError, ValidationError
from ..core.observability import metrics_collector
from ..models.booking import Booking, BookingStatus, PaymentStatus
from ..models.instance import InstanceStatus, TourInstance
from ..models.tour import Tour
from ..models.user import User, UserRole
from ..schemas.booking import CreateBookingRequest, UpdateBookingRequest
from .instance_service import effective_price

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "PP-"
REFERENCE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
REFERENCE_LENGTH = 6
REFERENCE_ATTEMPTS = 5

CAPACITY_RACE_MESSAGE = "Could not reserve spots. Another booking may have just been made. Please try again."


def generate_reference() -> str:
    """Random booking reference, e.g. ``PP-7K2M9Q``; no 0/O or 1/I."""
    return REFERENCE_PREFIX + "".join(
        secrets.choice(REFERENCE_ALPHABET) for _ in range(REFERENCE_LENGTH)
    )


def split_name(full_name: str) -> tuple[str, str]:
    parts = full_name.split()
    if not parts:
        return "Guest", ""
    return parts[0], " ".join(parts[1:])


class BookingService:
    """Service for booking-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load_instance_with_tour(self, instance_id: UUID) -> tuple[TourInstance, Tour]:
        stmt = (
            select(TourInstance, Tour)
            .join(Tour, Tour.id == TourInstance.tour_id)
            .where(TourInstance.id == instance_id)
            .execution_options(populate_existing=True)
        )
        row = (await self.db.execute(stmt)).first()
        if row is None:
            raise NotFoundError(resource_type="tour instance", resource_id=str(instance_id))
        return row[0], row[1]

    async def _unique_reference(self) -> str:
        reference = generate_reference()
        for _ in range(REFERENCE_ATTEMPTS):
            existing = await self.db.scalar(
                select(Booking.id).where(Booking.booking_reference == reference)
            )
            if existing is None:
                break
            reference = generate_reference()
        return reference

    async def _get_or_create_customer(self, request: CreateBookingRequest) -> User:
        email = request.lead_participant_email.lower()
        user = await self.db.scalar(select(User).where(func.lower(User.email) == email))
        if user:
            return user

        first_name, last_name = split_name(request.lead_participant_name)
        user = User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            phone=request.lead_participant_phone,
            role=UserRole.CUSTOMER.value,
        )
        self.db.add(user)
        await self.db.flush()

        logger.info("Guest customer created for booking", extra={"user_id": str(user.id)})
        return user

    async def create_booking(
        self,
        request: CreateBookingRequest,
        current_user: Optional[User] = None,
    ) -> Booking:
        """
        Reserve spots on a tour instance and create a pending booking.

        Capacity is claimed with a conditional UPDATE that only succeeds if
        ``capacity_booked`` still holds the value read before the update.

        Args:
            request: Booking request
            current_user: Authenticated customer, if any; guests are matched by email

        Returns:
            Created booking entity

        Raises:
            ValidationError: Invalid participant count or instance not bookable
            NotFoundError: Unknown tour instance
            InsufficientCapacityError: Fewer spots left than requested
            ConflictError: Capacity changed while reserving
        """
        count = request.participant_count
        if count < 1 or count > settings.max_participants_per_booking:
            raise ValidationError("Invalid participant count")

        try:
            instance_id = UUID(request.tour_instance_id)
        except ValueError:
            raise NotFoundError(resource_type="tour instance", resource_id=request.tour_instance_id)

        instance, tour = await self._load_instance_with_tour(instance_id)

        if instance.status != InstanceStatus.SCHEDULED:
            raise ValidationError("This tour instance is not available for booking")

        observed_booked = instance.capacity_booked
        available = instance.capacity_max - observed_booked
        if available < count:
            logger.warning(
                "Booking rejected - insufficient capacity",
                extra={
                    "tour_instance_id": str(instance_id),
                    "requested": count,
                    "available": available
                }
            )
            raise InsufficientCapacityError(requested=count, available=max(available, 0))

        price_per_person = effective_price(instance, tour)
        customer = current_user or await self._get_or_create_customer(request)
        reference = await self._unique_reference()

        # Re-read after customer and reference lookups
        observed_booked = await self.db.scalar(
            select(TourInstance.capacity_booked).where(TourInstance.id == instance_id)
        )
        available = instance.capacity_max - observed_booked
        if available < count:
            await self.db.rollback()
            metrics_collector.record_capacity_conflict()
            raise ConflictError(f"Only {max(available, 0)} spots available")

        claim = (
            update(TourInstance)
            .where(
                TourInstance.id == instance_id,
                TourInstance.capacity_booked == observed_booked,
            )
            .values(capacity_booked=observed_booked + count)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(claim)
        if result.rowcount != 1:
            await self.db.rollback()
            metrics_collector.record_capacity_conflict()
            logger.warning(
                "Booking rejected - capacity changed during reservation",
                extra={"tour_instance_id": str(instance_id), "observed_booked": observed_booked}
            )
            raise ConflictError(CAPACITY_RACE_MESSAGE)

        booking = Booking(
            booking_reference=reference,
            tour_instance_id=instance_id,
            customer_id=customer.id,
            lead_participant_name=request.lead_participant_name,
            lead_participant_email=request.lead_participant_email,
            lead_participant_phone=request.lead_participant_phone,
            participant_count=count,
            base_price_amount=price_per_person,
            total_amount=price_per_person * count,
            price_currency=tour.price_currency,
            special_requests=request.special_requests or None,
            dietary_restrictions=request.dietary_restrictions or None,
            booking_status=BookingStatus.PENDING_PAYMENT.value,
            payment_status=PaymentStatus.PENDING.value,
            expires_at=utcnow() + timedelta(minutes=settings.booking_expiry_minutes),
        )
        self.db.add(booking)

        # Capacity claim and booking row commit together
        await self.db.commit()
        await self.db.refresh(booking)
        await self.db.refresh(instance)

        metrics_collector.record_booking_created(count)
        metrics_collector.set_capacity_utilization(
            str(instance_id), instance.capacity_booked, instance.capacity_max
        )

        logger.info(
            "Booking created successfully",
            extra={
                "booking_id": str(booking.id),
                "booking_reference": reference,
                "tour_instance_id": str(instance_id),
                "participant_count": count,
                "total_amount": booking.total_amount
            }
        )

        return booking

    async def list_bookings(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
    ) -> tuple[list[Booking], int]:
        """Admin search over bookings, newest first."""
        conditions = []
        if status:
            conditions.append(Booking.booking_status == status)
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(or_(
                func.lower(Booking.booking_reference).like(pattern),
                func.lower(Booking.lead_participant_name).like(pattern),
                func.lower(Booking.lead_participant_email).like(pattern),
            ))

        total = await self.db.scalar(select(func.count()).select_from(Booking).where(*conditions))
        stmt = (
            select(Booking)
            .where(*conditions)
            .order_by(Booking.created_at.desc())
            .limit(min(limit, 100))
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total or 0

    async def update_booking(
        self,
        booking: Booking,
        request: UpdateBookingRequest,
        cancelled_by: str = "admin",
    ) -> Booking:
        """
        Apply admin changes to a booking.

        Moving a booking to ``cancelled`` releases its spots once and stamps
        the cancellation time and actor.
        """
        updates: dict[str, Any] = {}
        for field in request.model_fields_set:
            value = getattr(request, field)
            if field in ("booking_status", "payment_status"):
                if value is None:
                    continue
                value = value.value
            if field == "refunded_at" and value is not None:
                value = to_naive_utc(value)
            updates[field] = value

        if not updates:
            raise ValidationError("No valid fields to update")

        cancelling = (
            updates.get("booking_status") == BookingStatus.CANCELLED
            and booking.booking_status != BookingStatus.CANCELLED
        )

        for field, value in updates.items():
            setattr(booking, field, value)

        if cancelling:
            booking.cancelled_at = utcnow()
            booking.cancelled_by = cancelled_by
            await self._release_capacity(booking)

        await self.db.commit()
        await self.db.refresh(booking)

        if cancelling:
            metrics_collector.record_booking_cancelled(cancelled_by)

        logger.info(
            "Booking updated",
            extra={
                "booking_id": str(booking.id),
                "fields": sorted(updates),
                "cancelled": cancelling
            }
        )

        return booking

    async def _release_capacity(self, booking: Booking) -> None:
        instance = await self.db.scalar(
            select(TourInstance).where(TourInstance.id == booking.tour_instance_id)
            .execution_options(populate_existing=True)
        )
        if instance is None:
            return
        instance.capacity_booked = max(0, instance.capacity_booked - booking.participant_count)

        logger.info(
            "Capacity released",
            extra={
                "tour_instance_id": str(instance.id),
                "released": booking.participant_count,
                "capacity_booked": instance.capacity_booked
            }
        )

    async def get_booking_by_id(self, booking_id: UUID) -> Optional[Booking]:
        stmt = select(Booking).where(Booking.id == booking_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_booking_by_id_or_raise(self, booking_id: UUID) -> Booking:
        """
        Get booking by ID or raise NotFoundError.

        Raises:
            NotFoundError: If booking not found
        """
        booking = await self.get_booking_by_id(booking_id)
        if not booking:
            logger.warning("Booking not found", extra={"booking_id": str(booking_id)})
            raise NotFoundError(resource_type="booking", resource_id=str(booking_id))
        return booking
