"""Map route editing, GeoJSON encoding and playback."""

from .editor import EditorMode, RouteChange, RouteEditor, RouteSaveError, Waypoint, WaypointType
from .geo import EARTH_RADIUS_KM, LatLng, centroid, haversine_km, route_distance_km
from .geojson import ParsedRoute, RouteDataError, RouteStop, build_route_data, editor_points, parse_route_data
from .playback import CameraMove, PlaybackState, RoutePlayback, build_flythrough

__all__ = [
    "EARTH_RADIUS_KM",
    "CameraMove",
    "EditorMode",
    "LatLng",
    "ParsedRoute",
    "PlaybackState",
    "RouteChange",
    "RouteDataError",
    "RouteEditor",
    "RoutePlayback",
    "RouteSaveError",
    "RouteStop",
    "Waypoint",
    "WaypointType",
    "build_flythrough",
    "build_route_data",
    "centroid",
    "editor_points",
    "haversine_km",
    "parse_route_data",
    "route_distance_km",
]
