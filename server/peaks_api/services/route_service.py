"""Route service: saving, loading and previewing tour routes."""

import logging
from typing import Any, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import ValidationError
from ..core.observability import metrics_collector
from ..mapping.editor import RouteEditor, RouteSaveError, Waypoint, WaypointType
from ..mapping.geo import LatLng
from ..mapping.geojson import ParsedRoute, RouteDataError, RouteStop, editor_points, parse_route_data
from ..mapping.playback import build_flythrough, overview_view
from ..models.tour import Tour, TourWaypoint
from ..schemas.route import (
    CameraView,
    Coordinate,
    EditableRoute,
    Flythrough,
    FlythroughStep,
    RoutePoint,
    RouteWaypoint,
    SaveRouteRequest,
    TourRoute,
)

logger = logging.getLogger(__name__)


def _waypoint_from_row(row: TourWaypoint) -> Waypoint:
    try:
        waypoint_type = WaypointType(row.type)
    except ValueError:
        waypoint_type = WaypointType.WAYPOINT
    return Waypoint(
        lat=row.lat,
        lng=row.lng,
        type=waypoint_type,
        title=row.title,
        description=row.description,
        elevation=row.elevation,
        images=tuple(row.images or ()),
    )


def _route_waypoint(stop: RouteStop) -> RouteWaypoint:
    waypoint = stop.waypoint
    return RouteWaypoint(
        lat=waypoint.lat,
        lng=waypoint.lng,
        type=waypoint.type,
        title=stop.title,
        description=waypoint.description,
        elevation=waypoint.elevation,
        images=list(waypoint.images),
        order=stop.index,
    )


class RouteService:
    """Service for tour route operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _parse(self, tour: Tour) -> ParsedRoute:
        try:
            return parse_route_data(tour.route_data)
        except RouteDataError as e:
            logger.error(
                "Stored route data is unreadable",
                extra={"tour_id": str(tour.id), "error": str(e)}
            )
            raise

    async def _stops(self, tour: Tour) -> list[RouteStop]:
        """Route points from the stored features, else from the waypoint table."""
        parsed = self._parse(tour)
        if parsed.stops:
            return parsed.stops

        result = await self.db.execute(
            select(TourWaypoint)
            .where(TourWaypoint.tour_id == tour.id)
            .order_by(TourWaypoint.order_index)
        )
        return [
            RouteStop(index=row.order_index, waypoint=_waypoint_from_row(row))
            for row in result.scalars().all()
        ]

    async def get_public_route(self, tour: Tour) -> TourRoute:
        """Route line, distance, meeting point and stops shown on the tour page."""
        route_data: Optional[dict[str, Any]] = tour.route_data
        if route_data and isinstance(route_data.get("route"), dict):
            route_data = route_data["route"]

        stops = await self._stops(tour)

        return TourRoute(
            route_data=route_data,
            distance_km=tour.distance_km or 0.0,
            meeting_point_lat=tour.meeting_point_lat,
            meeting_point_lng=tour.meeting_point_lng,
            waypoints=[_route_waypoint(stop) for stop in stops],
        )

    async def get_editable_route(self, tour: Tour) -> EditableRoute:
        points = editor_points(tour.route_data)
        meeting_point = None
        if tour.meeting_point_lat is not None and tour.meeting_point_lng is not None:
            meeting_point = Coordinate(lat=tour.meeting_point_lat, lng=tour.meeting_point_lng)

        return EditableRoute(
            tour_id=str(tour.id),
            points=[
                RoutePoint(
                    lat=p.lat,
                    lng=p.lng,
                    type=p.type,
                    title=p.title,
                    description=p.description,
                    elevation=p.elevation,
                    images=list(p.images),
                )
                for p in points
            ],
            distance_km=tour.distance_km or 0.0,
            meeting_point=meeting_point,
        )

    async def save_route(self, tour: Tour, request: SaveRouteRequest) -> Tour:
        """
        Store the drawn route on the tour.

        The points are replayed through a :class:`RouteEditor` so the stored
        document, the distance and the waypoint rows all come from the same
        state. The distance sent by clients is never trusted.

        Raises:
            ValidationError: Fewer than two points
        """
        editor = RouteEditor(
            points=(
                Waypoint(
                    lat=p.lat,
                    lng=p.lng,
                    type=p.type,
                    title=p.title or None,
                    description=p.description or None,
                    elevation=p.elevation,
                    images=tuple(p.images),
                )
                for p in request.points
            )
        )
        if request.meeting_point:
            editor.set_meeting_point(request.meeting_point.lat, request.meeting_point.lng)

        try:
            route_data = editor.to_route_data()
        except RouteSaveError as e:
            raise ValidationError(str(e))

        distance_km = editor.distance_km
        tour.route_data = route_data
        tour.distance_km = distance_km
        if editor.meeting_point:
            tour.meeting_point_lat = editor.meeting_point.lat
            tour.meeting_point_lng = editor.meeting_point.lng
            if request.meeting_point.address:
                tour.meeting_point = request.meeting_point.address

        await self.db.execute(delete(TourWaypoint).where(TourWaypoint.tour_id == tour.id))
        for index, point in editor.stops():
            self.db.add(TourWaypoint(
                tour_id=tour.id,
                order_index=index,
                lat=point.lat,
                lng=point.lng,
                elevation=point.elevation,
                type=point.type.value,
                title=point.title,
                description=point.description,
                images=list(point.images),
            ))

        await self.db.commit()
        await self.db.refresh(tour)

        metrics_collector.record_route_saved(distance_km)

        logger.info(
            "Route saved",
            extra={
                "tour_id": str(tour.id),
                "point_count": len(editor),
                "stop_count": len(editor.stops()),
                "distance_km": round(distance_km, 3)
            }
        )

        return tour

    async def flythrough(self, tour: Tour) -> Flythrough:
        """Auto-play plan over the tour's stops."""
        stops = await self._stops(tour)
        waypoints = [stop.waypoint for stop in stops]
        view = overview_view(
            waypoints,
            LatLng(lat=settings.map_default_center_lat, lng=settings.map_default_center_lng),
        )
        steps = build_flythrough(waypoints, titles=[stop.title for stop in stops])

        return Flythrough(
            initial_view=CameraView(
                center=Coordinate(lat=view.center.lat, lng=view.center.lng),
                zoom=view.zoom,
            ),
            steps=[FlythroughStep(**step) for step in steps],
        )
