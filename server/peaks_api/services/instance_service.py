"""Tour instance service: scheduling dates and reporting availability."""

import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import to_naive_utc, utcnow
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..models.booking import Booking, BookingStatus
from ..models.instance import InstanceStatus, TourInstance
from ..models.tour import Tour
from ..models.user import User
from ..schemas.instance import CreateInstanceRequest, UpdateInstanceRequest

logger = logging.getLogger(__name__)


def effective_price(instance: TourInstance, tour: Tour) -> int:
    """Per-person price in minor units: the date's override or the tour base price."""
    if instance.price_override_amount is not None:
        return instance.price_override_amount
    return tour.base_price_amount


class InstanceService:
    """Service for tour instance operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_instances(self, tour_id: UUID) -> list[TourInstance]:
        stmt = (
            select(TourInstance)
            .where(TourInstance.tour_id == tour_id)
            .order_by(TourInstance.start_datetime)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_bookable_instances(self, tour_id: UUID) -> list[TourInstance]:
        """Scheduled future dates that still have spots left."""
        stmt = (
            select(TourInstance)
            .where(
                TourInstance.tour_id == tour_id,
                TourInstance.status == InstanceStatus.SCHEDULED,
                TourInstance.start_datetime > utcnow(),
                TourInstance.capacity_booked < TourInstance.capacity_max,
            )
            .order_by(TourInstance.start_datetime)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_instance(
        self,
        tour: Tour,
        request: CreateInstanceRequest,
        guide: User,
    ) -> TourInstance:
        """
        Schedule a new date for ``tour``.

        Args:
            tour: Tour being scheduled
            request: Instance creation request
            guide: Operator scheduling the date, recorded as its guide

        Returns:
            Created tour instance
        """
        instance = TourInstance(
            tour_id=tour.id,
            guide_id=guide.id,
            start_datetime=to_naive_utc(request.start_datetime),
            end_datetime=to_naive_utc(request.end_datetime) if request.end_datetime else None,
            capacity_max=request.capacity_max or settings.default_instance_capacity,
            capacity_booked=0,
            price_override_amount=request.price_override.amount if request.price_override else None,
            status=InstanceStatus.SCHEDULED,
            notes=request.notes,
        )

        self.db.add(instance)
        await self.db.commit()
        await self.db.refresh(instance)

        logger.info(
            "Tour instance created",
            extra={
                "tour_instance_id": str(instance.id),
                "tour_id": str(tour.id),
                "start_datetime": instance.start_datetime.isoformat(),
                "capacity_max": instance.capacity_max
            }
        )

        return instance

    async def update_instance(self, instance: TourInstance, request: UpdateInstanceRequest) -> TourInstance:
        """Apply allow-listed fields; capacity may not drop below what is booked."""
        updates: dict[str, Any] = {}
        fields = request.model_fields_set

        if "start_datetime" in fields and request.start_datetime is not None:
            updates["start_datetime"] = to_naive_utc(request.start_datetime)
        if "end_datetime" in fields:
            updates["end_datetime"] = to_naive_utc(request.end_datetime) if request.end_datetime else None
        if "capacity_max" in fields and request.capacity_max is not None:
            updates["capacity_max"] = request.capacity_max
        if "price_override" in fields:
            updates["price_override_amount"] = request.price_override.amount if request.price_override else None
        if "status" in fields and request.status is not None:
            updates["status"] = request.status.value
        for field in ("cancellation_reason", "notes"):
            if field in fields:
                updates[field] = getattr(request, field)

        if not updates:
            raise ValidationError("No valid fields to update")

        capacity_max = updates.get("capacity_max", instance.capacity_max)
        if capacity_max < instance.capacity_booked:
            raise ValidationError(
                f"capacity_max cannot be lower than the {instance.capacity_booked} spots already booked"
            )

        start = updates.get("start_datetime", instance.start_datetime)
        end = updates.get("end_datetime", instance.end_datetime)
        if end is not None and end <= start:
            raise ValidationError("end_datetime must be after start_datetime")

        for field, value in updates.items():
            setattr(instance, field, value)

        await self.db.commit()
        await self.db.refresh(instance)

        logger.info(
            "Tour instance updated",
            extra={"tour_instance_id": str(instance.id), "fields": sorted(updates)}
        )

        return instance

    async def count_active_bookings(self, instance_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(Booking)
            .where(
                Booking.tour_instance_id == instance_id,
                Booking.booking_status != BookingStatus.CANCELLED,
            )
        )
        return await self.db.scalar(stmt) or 0

    async def delete_instance(self, instance: TourInstance) -> None:
        """Delete a date; refused while it has bookings that are not cancelled."""
        active = await self.count_active_bookings(instance.id)
        if active:
            logger.warning(
                "Tour instance deletion refused - active bookings",
                extra={"tour_instance_id": str(instance.id), "active_bookings": active}
            )
            raise ConflictError(
                f"Cannot delete a tour date with {active} active booking(s). Cancel it instead.",
                conflicting_resource={"tour_instance_id": str(instance.id), "active_bookings": active}
            )

        await self.db.delete(instance)
        await self.db.commit()

        logger.info("Tour instance deleted", extra={"tour_instance_id": str(instance.id)})

    async def get_instance_by_id(self, instance_id: UUID) -> Optional[TourInstance]:
        stmt = select(TourInstance).where(TourInstance.id == instance_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_instance_for_tour_or_raise(self, tour_id: UUID, instance_id: UUID) -> TourInstance:
        """
        Get an instance that belongs to ``tour_id`` or raise NotFoundError.

        Raises:
            NotFoundError: If the instance does not exist or belongs to another tour
        """
        instance = await self.get_instance_by_id(instance_id)
        if not instance or instance.tour_id != tour_id:
            logger.warning(
                "Tour instance not found",
                extra={"tour_id": str(tour_id), "tour_instance_id": str(instance_id)}
            )
            raise NotFoundError(resource_type="tour instance", resource_id=str(instance_id))
        return instance
