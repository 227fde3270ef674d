"""Operator router: managing own tours, their dates and routes."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import require_operator
from ..core.exceptions import APIException, InternalServerError
from ..models.tour import TourStatus
from ..models.user import User
from ..schemas.common import Pagination, SuccessResponse
from ..schemas.instance import CreateInstanceRequest, TourInstance, UpdateInstanceRequest
from ..schemas.route import EditableRoute, SaveRouteRequest
from ..schemas.tour import CreateTourRequest, Tour, TourListResponse, UpdateTourRequest
from ..services.instance_service import InstanceService
from ..services.route_service import RouteService
from ..services.tour_service import TourService
from .tours import convert_instance_to_schema, convert_tour_to_schema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/operator", tags=["operator"])

DB_DEPENDENCY = Depends(get_db)
OPERATOR_DEPENDENCY = Depends(require_operator)


def _unexpected(action: str, error: Exception, **context) -> InternalServerError:
    logger.error(
        f"Unexpected error {action}",
        extra={**context, "error": str(error)},
        exc_info=True
    )
    return InternalServerError()


@router.get("/tours", response_model=TourListResponse)
async def list_operator_tours(
    status: Optional[TourStatus] = Query(None, description="Filter by status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = DB_DEPENDENCY,
    user: User = OPERATOR_DEPENDENCY
) -> JSONResponse:
    """Tours owned by the caller; admins see every tour."""
    tour_service = TourService(db)

    try:
        tours, total = await tour_service.list_tours(
            status=status.value if status else None,
            operator_id=None if user.is_admin else user.id,
            page=page,
            limit=limit
        )
        response_data = TourListResponse(
            items=[convert_tour_to_schema(t) for t in tours],
            pagination=Pagination(page=page, limit=limit, total=total)
        )
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except APIException:
        raise

    except Exception as e:
        raise _unexpected("listing operator tours", e, user_id=str(user.id))


@router.post("/tours", response_model=Tour, status_code=201)
async def create_tour(
    request: CreateTourRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = OPERATOR_DEPENDENCY
) -> JSONResponse:
    """Create a tour owned by the caller. The slug is derived from the name."""
    tour_service = TourService(db)

    try:
        tour = await tour_service.create_tour(request, user)
        response_data = convert_tour_to_schema(tour)
        return JSONResponse(status_code=201, content=response_data.model_dump(mode="json"))

    except APIException:
        raise

    except Exception as e:
        raise _unexpected("in tour creation", e, name=request.name)


@router.get("/tours/{tour_id}", response_model=Tour)
async def get_operator_tour(
    tour_id: UUID,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = OPERATOR_DEPENDENCY
) -> JSONResponse:
    tour_service = TourService(db)

    try:
        tour = await tour_service.get_owned_tour_or_raise(tour_id, user)
        return JSONResponse(status_code=200, content=convert_tour_to_schema(tour).model_dump(mode="json"))

    except APIException:
        raise

    except Exception as e:
        raise _unexpected("getting operator tour", e, tour_id=str(tour_id))


@router.patch("/tours/{tour_id}", response_model=Tour)
async def update_tour(
    tour_id: UUID,
    request: UpdateTourRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = OPERATOR_DEPENDENCY
) -> JSONResponse:
    """Partially update a tour. Renaming regenerates the slug."""
    tour_service = TourService(db)

    try:
        tour = await tour_service.get_owned_tour_or_raise(tour_id, user)
        tour = await tour_service.update_tour(tour, request, user)
        return JSONResponse(status_code=200, content=convert_tour_to_schema(tour).model_dump(mode="json"))

    except APIException:
        raise

    except Exception as e:
        raise _unexpected("updating tour", e, tour_id=str(tour_id))


@router.delete("/tours/{tour_id}", response_model=SuccessResponse)
async def delete_tour(
    tour_id: UUID,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = OPERATOR_DEPENDENCY
) -> JSONResponse:
    """Delete a tour. Operators may only delete drafts."""
    tour_service = TourService(db)

    try:
        tour = await tour_service.get_owned_tour_or_raise(tour_id, user)
        await tour_service.delete_tour(tour, user)
        return JSONResponse(status_code=200, content=SuccessResponse().model_dump())

    except APIException:
        raise

    except Exception as e:
        raise _unexpected("deleting tour", e, tour_id=str(tour_id))


@router.get("/tours/{tour_id}/instances", response_model=list[TourInstance])
async def list_instances(
    tour_id: UUID,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = OPERATOR_DEPENDENCY
) -> JSONResponse:
    """All dates of a tour, past and future."""
    tour_service = TourService(db)
    instance_service = InstanceService(db)

    try:
        tour = await tour_service.get_owned_tour_or_raise(tour_id, user)
        instances = await instance_service.list_instances(tour.id)
        return JSONResponse(
            status_code=200,
            content=[convert_instance_to_schema(i, tour).model_dump(mode="json") for i in instances]
        )

    except APIException:
        raise

    except Exception as e:
        raise _unexpected("listing tour instances", e, tour_id=str(tour_id))


@router.post("/tours/{tour_id}/instances", response_model=TourInstance, status_code=201)
async def create_instance(
    tour_id: UUID,
    request: CreateInstanceRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = OPERATOR_DEPENDENCY
) -> JSONResponse:
    """Schedule a new date; the caller is recorded as its guide."""
    tour_service = TourService(db)
    instance_service = InstanceService(db)

    try:
        tour = await tour_service.get_owned_tour_or_raise(tour_id, user)
        instance = await instance_service.create_instance(tour, request, user)
        return JSONResponse(
            status_code=201,
            content=convert_instance_to_schema(instance, tour).model_dump(mode="json")
        )

    except APIException:
        raise

    except Exception as e:
        raise _unexpected("creating tour instance", e, tour_id=str(tour_id))


@router.patch("/tours/{tour_id}/instances/{instance_id}", response_model=TourInstance)
async def update_instance(
    tour_id: UUID,
    instance_id: UUID,
    request: UpdateInstanceRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = OPERATOR_DEPENDENCY
) -> JSONResponse:
    tour_service = TourService(db)
    instance_service = InstanceService(db)

    try:
        tour = await tour_service.get_owned_tour_or_raise(tour_id, user)
        instance = await instance_service.get_instance_for_tour_or_raise(tour.id, instance_id)
        instance = await instance_service.update_instance(instance, request)
        return JSONResponse(
            status_code=200,
            content=convert_instance_to_schema(instance, tour).model_dump(mode="json")
        )

    except APIException:
        raise

    except Exception as e:
        raise _unexpected("updating tour instance", e, tour_instance_id=str(instance_id))


@router.delete("/tours/{tour_id}/instances/{instance_id}", response_model=SuccessResponse)
async def delete_instance(
    tour_id: UUID,
    instance_id: UUID,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = OPERATOR_DEPENDENCY
) -> JSONResponse:
    """Delete a date. Refused while it has bookings that are not cancelled."""
    tour_service = TourService(db)
    instance_service = InstanceService(db)

    try:
        tour = await tour_service.get_owned_tour_or_raise(tour_id, user)
        instance = await instance_service.get_instance_for_tour_or_raise(tour.id, instance_id)
        await instance_service.delete_instance(instance)
        return JSONResponse(status_code=200, content=SuccessResponse().model_dump())

    except APIException:
        raise

    except Exception as e:
        raise _unexpected("deleting tour instance", e, tour_instance_id=str(instance_id))


@router.get("/tours/{tour_id}/route", response_model=EditableRoute)
async def get_editable_route(
    tour_id: UUID,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = OPERATOR_DEPENDENCY
) -> JSONResponse:
    """Every route point with its details, for loading into the editor."""
    tour_service = TourService(db)
    route_service = RouteService(db)

    try:
        tour = await tour_service.get_owned_tour_or_raise(tour_id, user)
        response_data = await route_service.get_editable_route(tour)
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except APIException:
        raise

    except Exception as e:
        raise _unexpected("loading editable route", e, tour_id=str(tour_id))


@router.put("/tours/{tour_id}/route", response_model=EditableRoute)
async def save_route(
    tour_id: UUID,
    request: SaveRouteRequest,
    db: AsyncSession = DB_DEPENDENCY,
    user: User = OPERATOR_DEPENDENCY
) -> JSONResponse:
    """
    Save the drawn route and meeting point.

    At least two points are required. The distance is recomputed from the
    points and returned with the stored route.
    """
    tour_service = TourService(db)
    route_service = RouteService(db)

    try:
        tour = await tour_service.get_owned_tour_or_raise(tour_id, user)
        tour = await route_service.save_route(tour, request)
        response_data = await route_service.get_editable_route(tour)
        return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))

    except APIException:
        raise

    except Exception as e:
        raise _unexpected("saving route", e, tour_id=str(tour_id))
