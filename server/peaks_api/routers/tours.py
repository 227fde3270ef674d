"""Public tour router: browsing tours, dates and routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import APIException, InternalServerError
from ..models.instance import TourInstance as TourInstanceModel
from ..models.tour import Tour as TourModel
from ..schemas.common import Money, Pagination
from ..schemas.instance import PublicTourInstance, TourInstance
from ..schemas.route import Flythrough, TourRoute
from ..schemas.tour import Tour, TourListResponse
from ..services.instance_service import InstanceService, effective_price
from ..services.route_service import RouteService
from ..services.tour_service import TourService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tours", tags=["tours"])

DB_DEPENDENCY = Depends(get_db)


def convert_tour_to_schema(tour_model: TourModel) -> Tour:
    """Convert tour model to schema."""
    return Tour(
        id=str(tour_model.id),
        slug=tour_model.slug,
        operator_id=str(tour_model.operator_id) if tour_model.operator_id else None,
        name=tour_model.name,
        tagline=tour_model.tagline,
        description=tour_model.description,
        type=tour_model.type,
        difficulty=tour_model.difficulty,
        duration_minutes=tour_model.duration_minutes,
        min_participants=tour_model.min_participants,
        max_participants=tour_model.max_participants,
        base_price=Money(amount=tour_model.base_price_amount, currency=tour_model.price_currency),
        highlights=tour_model.highlights or [],
        whats_included=tour_model.whats_included or [],
        what_to_bring=tour_model.what_to_bring or [],
        meeting_point=tour_model.meeting_point,
        meeting_point_lat=tour_model.meeting_point_lat,
        meeting_point_lng=tour_model.meeting_point_lng,
        location_area=tour_model.location_area,
        cover_image=tour_model.cover_image,
        status=tour_model.status,
        is_featured=tour_model.is_featured,
        distance_km=tour_model.distance_km or 0.0,
        created_at=tour_model.created_at,
        updated_at=tour_model.updated_at
    )


def convert_instance_to_schema(instance_model: TourInstanceModel, tour_model: TourModel) -> TourInstance:
    """Convert tour instance model to schema; the tour supplies price and currency."""
    currency = tour_model.price_currency
    price_override = None
    if instance_model.price_override_amount is not None:
        price_override = Money(amount=instance_model.price_override_amount, currency=currency)

    return TourInstance(
        id=str(instance_model.id),
        tour_id=str(instance_model.tour_id),
        guide_id=str(instance_model.guide_id) if instance_model.guide_id else None,
        start_datetime=instance_model.start_datetime,
        end_datetime=instance_model.end_datetime,
        capacity_max=instance_model.capacity_max,
        capacity_booked=instance_model.capacity_booked,
        spots_left=instance_model.spots_left,
        availability=instance_model.availability,
        price=Money(amount=effective_price(instance_model, tour_model), currency=currency),
        price_override=price_override,
        status=instance_model.status,
        cancellation_reason=instance_model.cancellation_reason,
        notes=instance_model.notes
    )


def _convert_public_instance(instance_model: TourInstanceModel, tour_model: TourModel) -> PublicTourInstance:
    return PublicTourInstance(
        id=str(instance_model.id),
        start_datetime=instance_model.start_datetime,
        end_datetime=instance_model.end_datetime,
        spots_left=instance_model.spots_left,
        availability=instance_model.availability,
        price=Money(amount=effective_price(instance_model, tour_model), currency=tour_model.price_currency)
    )


@router.get("", response_model=TourListResponse)
async def list_tours(
    type: Optional[str] = Query(None, description="Filter by tour type"),
    difficulty: Optional[str] = Query(None, description="Filter by difficulty"),
    q: Optional[str] = Query(None, max_length=200, description="Search name, tagline and area"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """List active tours, featured first."""
    tour_service = TourService(db)

    try:
        tours, total = await tour_service.list_tours(
            tour_type=type,
            difficulty=difficulty,
            search=q,
            page=page,
            limit=limit
        )

        response_data = TourListResponse(
            items=[convert_tour_to_schema(t) for t in tours],
            pagination=Pagination(page=page, limit=limit, total=total)
        )

        return JSONResponse(
            status_code=200,
            content=response_data.model_dump(mode="json")
        )

    except APIException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error listing tours",
            extra={"error": str(e)},
            exc_info=True
        )
        raise InternalServerError()


@router.get("/{slug}", response_model=Tour)
async def get_tour(slug: str, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """Get an active tour by slug."""
    tour_service = TourService(db)

    try:
        tour = await tour_service.get_active_tour_by_slug_or_raise(slug)
        response_data = convert_tour_to_schema(tour)

        return JSONResponse(
            status_code=200,
            content=response_data.model_dump(mode="json")
        )

    except APIException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error getting tour",
            extra={"slug": slug, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError()


@router.get("/{slug}/instances", response_model=list[PublicTourInstance])
async def list_tour_instances(slug: str, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """Upcoming dates of a tour that can still be booked."""
    tour_service = TourService(db)
    instance_service = InstanceService(db)

    try:
        tour = await tour_service.get_active_tour_by_slug_or_raise(slug)
        instances = await instance_service.list_bookable_instances(tour.id)

        return JSONResponse(
            status_code=200,
            content=[_convert_public_instance(i, tour).model_dump(mode="json") for i in instances]
        )

    except APIException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error listing tour instances",
            extra={"slug": slug, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError()


@router.get("/{slug}/route", response_model=TourRoute)
async def get_tour_route(slug: str, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """
    Route of a tour for the map preview.

    Returns the route line, its distance, the meeting point and the stops
    along the way.
    """
    tour_service = TourService(db)
    route_service = RouteService(db)

    try:
        tour = await tour_service.get_active_tour_by_slug_or_raise(slug)
        response_data = await route_service.get_public_route(tour)

        return JSONResponse(
            status_code=200,
            content=response_data.model_dump(mode="json")
        )

    except APIException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error getting tour route",
            extra={"slug": slug, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError()


@router.get("/{slug}/route/flythrough", response_model=Flythrough)
async def get_tour_flythrough(slug: str, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """Camera plan for auto-playing a tour's stops."""
    tour_service = TourService(db)
    route_service = RouteService(db)

    try:
        tour = await tour_service.get_active_tour_by_slug_or_raise(slug)
        response_data = await route_service.flythrough(tour)

        return JSONResponse(
            status_code=200,
            content=response_data.model_dump(mode="json")
        )

    except APIException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error building flythrough",
            extra={"slug": slug, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError()
