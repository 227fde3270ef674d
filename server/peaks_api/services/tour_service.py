"""Tour service for business logic operations."""

import logging
import re
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..models.tour import Tour, TourStatus
from ..models.user import User
from ..schemas.tour import CreateTourRequest, UpdateTourRequest

logger = logging.getLogger(__name__)

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """Lowercase, collapse non-alphanumerics to ``-`` and trim dashes."""
    return _NON_SLUG_CHARS.sub("-", name.lower()).strip("-")


class TourService:
    """Service for tour-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _unique_slug(self, name: str, exclude_id: Optional[UUID] = None) -> str:
        base = slugify(name)
        if not base:
            raise ValidationError("Tour name must contain letters or digits")

        slug, suffix = base, 2
        while True:
            existing = await self.get_tour_by_slug(slug)
            if existing is None or existing.id == exclude_id:
                return slug
            slug = f"{base}-{suffix}"
            suffix += 1

    async def create_tour(self, request: CreateTourRequest, operator: User) -> Tour:
        """
        Create a new tour owned by ``operator``.

        Args:
            request: Tour creation request
            operator: Operator creating the tour

        Returns:
            Created tour entity

        Raises:
            ConflictError: If the generated slug is taken concurrently
        """
        slug = await self._unique_slug(request.name)
        data = request.model_dump(mode="json", exclude={"base_price", "is_featured"})

        tour = Tour(
            **data,
            slug=slug,
            operator_id=operator.id,
            base_price_amount=request.base_price.amount,
            price_currency=request.base_price.currency,
            # Only admins may feature a tour
            is_featured=bool(request.is_featured) if operator.is_admin else False,
        )

        try:
            self.db.add(tour)
            await self.db.commit()
            await self.db.refresh(tour)
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(
                "Tour creation failed due to integrity constraint",
                extra={"slug": slug, "name": request.name, "error": str(e)}
            )
            raise ConflictError(
                error=f"Tour with slug '{slug}' already exists",
                conflicting_resource={"slug": slug}
            )

        logger.info(
            "Tour created successfully",
            extra={
                "tour_id": str(tour.id),
                "slug": tour.slug,
                "operator_id": str(operator.id)
            }
        )

        return tour

    async def update_tour(self, tour: Tour, request: UpdateTourRequest, actor: User) -> Tour:
        """Apply the fields present in ``request``; renaming regenerates the slug."""
        updates: dict[str, Any] = request.model_dump(mode="json", exclude_unset=True, exclude={"base_price"})

        if "is_featured" in updates and not actor.is_admin:
            del updates["is_featured"]
        if "base_price" in request.model_fields_set and request.base_price is not None:
            updates["base_price_amount"] = request.base_price.amount
            updates["price_currency"] = request.base_price.currency

        # Explicit nulls are dropped for required columns
        for required in ("name", "difficulty", "min_participants", "max_participants", "status",
                         "highlights", "whats_included", "what_to_bring", "is_featured"):
            if required in updates and updates[required] is None:
                del updates[required]

        if not updates:
            raise ValidationError("No valid fields to update")

        min_participants = updates.get("min_participants", tour.min_participants)
        max_participants = updates.get("max_participants", tour.max_participants)
        if max_participants < min_participants:
            raise ValidationError("max_participants must be at least min_participants")

        if "name" in updates:
            updates["slug"] = await self._unique_slug(updates["name"], exclude_id=tour.id)

        for field, value in updates.items():
            setattr(tour, field, value)
        tour_id = str(tour.id)
        slug = tour.slug

        try:
            await self.db.commit()
            await self.db.refresh(tour)
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(
                "Tour update failed due to integrity constraint",
                extra={"tour_id": tour_id, "slug": slug, "error": str(e)}
            )
            raise ConflictError(
                error=f"Tour with slug '{slug}' already exists",
                conflicting_resource={"slug": slug}
            )

        logger.info(
            "Tour updated",
            extra={"tour_id": tour_id, "fields": sorted(updates), "actor_id": str(actor.id)}
        )

        return tour

    async def delete_tour(self, tour: Tour, actor: User) -> None:
        """Delete a tour; operators may only delete drafts."""
        if not actor.is_admin and tour.status != TourStatus.DRAFT:
            raise ConflictError("Only draft tours can be deleted")

        await self.db.delete(tour)
        await self.db.commit()

        logger.info("Tour deleted", extra={"tour_id": str(tour.id), "actor_id": str(actor.id)})

    async def list_tours(
        self,
        status: Optional[str] = TourStatus.ACTIVE,
        operator_id: Optional[UUID] = None,
        tour_type: Optional[str] = None,
        difficulty: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Tour], int]:
        """Filtered, paginated tours with the total match count."""
        conditions = []
        if status is not None:
            conditions.append(Tour.status == status)
        if operator_id is not None:
            conditions.append(Tour.operator_id == operator_id)
        if tour_type:
            conditions.append(Tour.type == tour_type)
        if difficulty:
            conditions.append(Tour.difficulty == difficulty)
        if search:
            pattern = f"%{search.lower()}%"
            conditions.append(or_(
                func.lower(Tour.name).like(pattern),
                func.lower(Tour.tagline).like(pattern),
                func.lower(Tour.location_area).like(pattern),
            ))

        total = await self.db.scalar(select(func.count()).select_from(Tour).where(*conditions))

        stmt = (
            select(Tour)
            .where(*conditions)
            .order_by(Tour.is_featured.desc(), Tour.created_at.desc(), Tour.name)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all()), total or 0

    async def get_tour_by_id(self, tour_id: UUID) -> Optional[Tour]:
        """
        Get tour by ID.

        Args:
            tour_id: Tour ID to search for

        Returns:
            Tour if found, None otherwise
        """
        stmt = select(Tour).where(Tour.id == tour_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_tour_by_slug(self, slug: str) -> Optional[Tour]:
        """
        Get tour by slug.

        Args:
            slug: Tour slug to search for

        Returns:
            Tour if found, None otherwise
        """
        stmt = select(Tour).where(Tour.slug == slug)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_tour_by_id_or_raise(self, tour_id: UUID) -> Tour:
        """
        Get tour by ID or raise NotFoundError.

        Raises:
            NotFoundError: If tour not found
        """
        tour = await self.get_tour_by_id(tour_id)
        if not tour:
            logger.warning("Tour not found", extra={"tour_id": str(tour_id)})
            raise NotFoundError(resource_type="tour", resource_id=str(tour_id))
        return tour

    async def get_active_tour_by_slug_or_raise(self, slug: str) -> Tour:
        """Public lookup: drafts and archived tours are reported as missing."""
        tour = await self.get_tour_by_slug(slug)
        if not tour or tour.status != TourStatus.ACTIVE:
            raise NotFoundError(resource_type="tour", resource_id=slug)
        return tour

    async def get_owned_tour_or_raise(self, tour_id: UUID, actor: User) -> Tour:
        """
        Load a tour the actor may manage.

        Operators see only their own tours; another operator's tour is
        reported as not found. Admins may manage every tour.
        """
        tour = await self.get_tour_by_id_or_raise(tour_id)
        if actor.is_admin or tour.operator_id == actor.id:
            return tour
        if not actor.is_operator:
            raise AuthorizationError("Operator access required")

        logger.warning(
            "Operator attempted to access another operator's tour",
            extra={"tour_id": str(tour_id), "actor_id": str(actor.id)}
        )
        raise NotFoundError(resource_type="tour", resource_id=str(tour_id))
