"""Route editor state for drawing a tour route on a map.

The editor owns an ordered list of :class:`Waypoint` objects plus a single
meeting point. Clients translate map gestures into calls on
:class:`RouteEditor`:

* click on the map: :meth:`RouteEditor.click`
* marker drag end: :meth:`RouteEditor.move_point`
* marker right-click: :meth:`RouteEditor.remove_point`
* undo button: :meth:`RouteEditor.remove_last`

Every mutation builds a fresh tuple of points from the editor's current
points and publishes a :class:`RouteChange`. Points are frozen, so a
listener holding an earlier snapshot is never affected by later edits.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Sequence

from .geo import LatLng, route_distance_km, validate_coordinate

logger = logging.getLogger(__name__)

NO_SELECTION = -1
MIN_ROUTE_POINTS = 2


class WaypointType(str, Enum):
    """Kind of stop a waypoint marks along the route."""
    WAYPOINT = "waypoint"
    PHOTO = "photo"
    VIEWPOINT = "viewpoint"
    REST = "rest"
    DANGER = "danger"


class EditorMode(str, Enum):
    """What a map click does."""
    ROUTE = "route"
    MEETING = "meeting"


@dataclass(frozen=True)
class Waypoint:
    """A point on the route with optional metadata."""

    lat: float
    lng: float
    type: WaypointType = WaypointType.WAYPOINT
    title: Optional[str] = None
    description: Optional[str] = None
    elevation: Optional[float] = None
    images: tuple[str, ...] = field(default_factory=tuple)

    @property
    def position(self) -> LatLng:
        return LatLng(lat=self.lat, lng=self.lng)

    def display_title(self, index: int) -> str:
        return self.title or f"Waypoint {index + 1}"


@dataclass(frozen=True)
class RouteChange:
    """Snapshot published after every route mutation."""

    points: tuple[Waypoint, ...]
    distance_km: float


class RouteSaveError(ValueError):
    """Raised when the route cannot be saved in its current state."""


_UPDATABLE_FIELDS = {"title", "description", "type", "elevation"}


class RouteEditor:
    """Editable route with single-step undo and a meeting point."""

    def __init__(
        self,
        points: Iterable[Waypoint] = (),
        meeting_point: Optional[LatLng] = None,
        on_change: Optional[Callable[[RouteChange], None]] = None,
        on_meeting_point_change: Optional[Callable[[LatLng], None]] = None,
        on_select: Optional[Callable[[int], None]] = None,
    ):
        self._points: tuple[Waypoint, ...] = tuple(points)
        self._selected = NO_SELECTION
        self.mode = EditorMode.ROUTE
        self.meeting_point = meeting_point
        self.on_change = on_change
        self.on_meeting_point_change = on_meeting_point_change
        self.on_select = on_select

    @property
    def points(self) -> tuple[Waypoint, ...]:
        return self._points

    @property
    def selected_index(self) -> int:
        return self._selected

    @property
    def selected_point(self) -> Optional[Waypoint]:
        if self._selected == NO_SELECTION:
            return None
        return self._points[self._selected]

    @property
    def distance_km(self) -> float:
        return route_distance_km([p.position for p in self._points])

    @property
    def can_save(self) -> bool:
        return len(self._points) >= MIN_ROUTE_POINTS

    def __len__(self) -> int:
        return len(self._points)

    # Gestures

    def click(self, lat: float, lng: float) -> None:
        """Map click: append a point in route mode, move the meeting point otherwise."""
        if self.mode == EditorMode.MEETING:
            self.set_meeting_point(lat, lng)
        else:
            self.add_point(lat, lng)

    def add_point(self, lat: float, lng: float) -> Waypoint:
        validate_coordinate(lat, lng)
        point = Waypoint(lat=lat, lng=lng)
        self._publish(self._points + (point,))
        self.select(len(self._points) - 1)
        return point

    def select(self, index: int) -> None:
        if index != NO_SELECTION:
            self._check_index(index)
        self._selected = index
        if self.on_select:
            self.on_select(index)

    def move_point(self, index: int, lat: float, lng: float) -> None:
        """Drag end: reposition a point, keeping its metadata."""
        self._check_index(index)
        validate_coordinate(lat, lng)
        points = list(self._points)
        points[index] = replace(points[index], lat=lat, lng=lng)
        self._publish(tuple(points))

    def remove_point(self, index: int) -> Waypoint:
        """Right-click delete; always clears the selection."""
        self._check_index(index)
        removed = self._points[index]
        self._publish(tuple(p for i, p in enumerate(self._points) if i != index))
        self.select(NO_SELECTION)
        return removed

    def remove_last(self) -> Optional[Waypoint]:
        """Undo the most recent point."""
        if not self._points:
            return None
        removed = self._points[-1]
        self._publish(self._points[:-1])
        return removed

    def clear(self) -> None:
        self._publish(())
        self.select(NO_SELECTION)

    # Metadata

    def update_point(self, index: int, **changes: Any) -> Waypoint:
        """Update title, description, type or elevation of a point."""
        self._check_index(index)
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update waypoint fields: {sorted(unknown)}")
        if "type" in changes:
            changes["type"] = WaypointType(changes["type"])

        points = list(self._points)
        points[index] = replace(points[index], **changes)
        self._publish(tuple(points))
        return points[index]

    def add_images(self, index: int, urls: Sequence[str]) -> Waypoint:
        self._check_index(index)
        points = list(self._points)
        points[index] = replace(points[index], images=points[index].images + tuple(urls))
        self._publish(tuple(points))
        return points[index]

    def remove_image(self, index: int, image_index: int) -> Waypoint:
        self._check_index(index)
        images = list(self._points[index].images)
        if not 0 <= image_index < len(images):
            raise IndexError(f"Image index {image_index} out of range")
        del images[image_index]

        points = list(self._points)
        points[index] = replace(points[index], images=tuple(images))
        self._publish(tuple(points))
        return points[index]

    def set_meeting_point(self, lat: float, lng: float) -> None:
        validate_coordinate(lat, lng)
        self.meeting_point = LatLng(lat=lat, lng=lng)
        if self.on_meeting_point_change:
            self.on_meeting_point_change(self.meeting_point)

    # Output

    def stops(self) -> list[tuple[int, Waypoint]]:
        """Every point with its index in the full route."""
        return list(enumerate(self._points))

    def to_route_data(self) -> dict[str, Any]:
        """GeoJSON document persisted on the tour."""
        from .geojson import build_route_data

        if not self.can_save:
            raise RouteSaveError("Please draw a route with at least 2 points")
        return build_route_data(self._points)

    def _publish(self, points: tuple[Waypoint, ...]) -> None:
        self._points = points
        if self._selected >= len(points):
            self._selected = NO_SELECTION
        change = RouteChange(points=points, distance_km=self.distance_km)

        logger.debug(
            "Route changed",
            extra={"point_count": len(points), "distance_km": round(change.distance_km, 3)}
        )

        if self.on_change:
            self.on_change(change)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._points):
            raise IndexError(f"Waypoint index {index} out of range")
