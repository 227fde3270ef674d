"""Route and map Pydantic schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from ..mapping.editor import WaypointType


class Coordinate(BaseModel):
    """Latitude/longitude pair."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class MeetingPoint(Coordinate):
    """Meeting point marker, optionally with a street address."""

    address: Optional[str] = Field(None, max_length=500)


class RoutePoint(Coordinate):
    """A route point as drawn in the editor."""

    type: WaypointType = Field(WaypointType.WAYPOINT, description="Kind of stop")
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    elevation: Optional[float] = Field(None, description="Elevation in metres")
    images: list[str] = Field(default_factory=list, description="Photo URLs")


class SaveRouteRequest(BaseModel):
    """Request schema for saving a tour route."""

    points: list[RoutePoint] = Field(..., description="Ordered route points")
    meeting_point: Optional[MeetingPoint] = Field(None, description="Where participants gather")


class EditableRoute(BaseModel):
    """Full route as loaded back into the editor."""

    tour_id: str
    points: list[RoutePoint]
    distance_km: float = Field(..., ge=0)
    meeting_point: Optional[Coordinate] = None


class RouteWaypoint(BaseModel):
    """A stop shown along the public route."""

    lat: float
    lng: float
    type: WaypointType
    title: str
    description: Optional[str] = None
    elevation: Optional[float] = None
    images: list[str] = Field(default_factory=list)
    order: int = Field(..., ge=0, description="Position of the stop in the route")


class TourRoute(BaseModel):
    """Public route of a tour."""

    route_data: Optional[dict[str, Any]] = Field(None, description="GeoJSON LineString of the route")
    distance_km: float = Field(..., ge=0)
    meeting_point_lat: Optional[float] = None
    meeting_point_lng: Optional[float] = None
    waypoints: list[RouteWaypoint]


class CameraView(BaseModel):
    center: Coordinate
    zoom: float


class FlythroughStep(BaseModel):
    """One camera move of the auto-play flythrough."""

    index: int = Field(..., ge=0)
    title: str
    center: Coordinate
    zoom: float
    duration_ms: int
    padding: dict[str, int]
    close_popup_ms: int
    settle_ms: int
    dwell_ms: int
    progress: float = Field(..., ge=0, le=1)


class Flythrough(BaseModel):
    """Auto-play plan for a tour route."""

    initial_view: CameraView
    steps: list[FlythroughStep]


class MapConfig(BaseModel):
    """Map settings for clients rendering the editor or preview."""

    access_token: str
    style_url: str
    center: Coordinate
    zoom: float
