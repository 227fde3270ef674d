"""GeoJSON encoding of routes.

A saved route is a ``FeatureCollection`` with an extra ``route`` member:

.. code-block:: json

    {
      "type": "FeatureCollection",
      "route": {"type": "LineString", "coordinates": [[lng, lat], ...]},
      "features": [
        {"type": "Feature",
         "geometry": {"type": "Point", "coordinates": [lng, lat]},
         "properties": {"index": 3, "type": "photo", "title": "...", ...}}
      ]
    }

``route`` holds the line; ``features`` holds one feature per point with its
metadata, ``properties.index`` pointing back into ``route``. Older
documents that are a bare ``LineString`` or a ``FeatureCollection`` without
``route`` are still readable.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from .editor import Waypoint, WaypointType
from .geo import LatLng


class RouteDataError(ValueError):
    """Raised for documents that are not a readable route."""


@dataclass(frozen=True)
class RouteStop:
    """A route point and its position in the full route."""

    index: int
    waypoint: Waypoint

    @property
    def title(self) -> str:
        return self.waypoint.display_title(self.index)


@dataclass
class ParsedRoute:
    """Line coordinates plus the stops read from a stored document."""

    coordinates: list[LatLng] = field(default_factory=list)
    stops: list[RouteStop] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.coordinates


def to_line_string(points: Sequence[Waypoint]) -> dict[str, Any]:
    return {
        "type": "LineString",
        "coordinates": [p.position.to_position() for p in points],
    }


def waypoint_feature(index: int, point: Waypoint) -> dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": point.position.to_position()},
        "properties": {
            "index": index,
            "type": point.type.value,
            "title": point.title,
            "description": point.description,
            "elevation": point.elevation,
            "images": list(point.images),
        },
    }


def build_route_data(points: Sequence[Waypoint]) -> dict[str, Any]:
    """Encode a full route with one feature per point."""
    return {
        "type": "FeatureCollection",
        "features": [
            waypoint_feature(i, p) for i, p in enumerate(points)
        ],
        "route": to_line_string(points),
    }


def _position(value: Any) -> LatLng:
    if not isinstance(value, Sequence) or isinstance(value, str) or len(value) < 2:
        raise RouteDataError(f"Invalid GeoJSON position: {value!r}")
    try:
        return LatLng.from_position(value)
    except (TypeError, ValueError) as e:
        raise RouteDataError(f"Invalid GeoJSON position: {value!r}") from e


def _line_coordinates(line: Mapping[str, Any]) -> list[LatLng]:
    if line.get("type") != "LineString":
        raise RouteDataError(f"Expected a LineString, got {line.get('type')!r}")
    return [_position(c) for c in line.get("coordinates") or []]


def _waypoint_type(value: Any) -> WaypointType:
    try:
        return WaypointType(value or WaypointType.WAYPOINT.value)
    except ValueError:
        return WaypointType.WAYPOINT


def _feature_waypoint(feature: Mapping[str, Any]) -> tuple[Optional[int], Waypoint]:
    geometry = feature.get("geometry") or {}
    position = _position(geometry.get("coordinates"))
    properties = feature.get("properties") or {}

    index = properties.get("index")
    waypoint = Waypoint(
        lat=position.lat,
        lng=position.lng,
        type=_waypoint_type(properties.get("type")),
        title=properties.get("title") or None,
        description=properties.get("description") or None,
        elevation=properties.get("elevation"),
        images=tuple(properties.get("images") or ()),
    )
    return (index if isinstance(index, int) else None), waypoint


def parse_route_data(data: Optional[Mapping[str, Any]]) -> ParsedRoute:
    """Read a stored route document in any of the supported shapes."""
    if not data:
        return ParsedRoute()

    if not isinstance(data, Mapping):
        raise RouteDataError("Route data must be a JSON object")

    if data.get("type") == "LineString":
        return ParsedRoute(coordinates=_line_coordinates(data))

    route = data.get("route")
    features = data.get("features")
    if features is not None and not isinstance(features, list):
        raise RouteDataError("FeatureCollection features must be a list")

    stops = []
    for i, feature in enumerate(features or []):
        index, waypoint = _feature_waypoint(feature)
        stops.append(RouteStop(index=i if index is None else index, waypoint=waypoint))

    if isinstance(route, Mapping):
        coordinates = _line_coordinates(route)
    else:
        # Legacy collection: every feature is a route point
        coordinates = [stop.waypoint.position for stop in stops]

    return ParsedRoute(coordinates=coordinates, stops=stops)


def editor_points(data: Optional[Mapping[str, Any]]) -> list[Waypoint]:
    """Rebuild the full editable point list from a stored document."""
    parsed = parse_route_data(data)
    points = [Waypoint(lat=c.lat, lng=c.lng) for c in parsed.coordinates]

    for stop in parsed.stops:
        if 0 <= stop.index < len(points):
            line_point = points[stop.index]
            points[stop.index] = Waypoint(
                lat=line_point.lat,
                lng=line_point.lng,
                type=stop.waypoint.type,
                title=stop.waypoint.title,
                description=stop.waypoint.description,
                elevation=stop.waypoint.elevation,
                images=stop.waypoint.images,
            )

    return points
