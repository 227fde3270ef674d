"""Great-circle geometry for routes."""

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class LatLng:
    """A WGS84 coordinate in decimal degrees."""

    lat: float
    lng: float

    def to_position(self) -> list[float]:
        """GeoJSON position, longitude first."""
        return [self.lng, self.lat]

    @classmethod
    def from_position(cls, position: Sequence[float]) -> "LatLng":
        return cls(lat=float(position[1]), lng=float(position[0]))


def validate_coordinate(lat: float, lng: float) -> None:
    """Raise ``ValueError`` for coordinates outside the WGS84 range."""
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise ValueError("Coordinates must be finite numbers")
    if not -90 <= lat <= 90:
        raise ValueError(f"Latitude {lat} is outside [-90, 90]")
    if not -180 <= lng <= 180:
        raise ValueError(f"Longitude {lng} is outside [-180, 180]")


def haversine_km(a: LatLng, b: LatLng) -> float:
    """Great-circle distance between two coordinates in kilometres."""
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def route_distance_km(points: Sequence[LatLng]) -> float:
    """Sum of the distances between consecutive points; 0 below two points."""
    if len(points) < 2:
        return 0.0
    return sum(haversine_km(points[i], points[i + 1]) for i in range(len(points) - 1))


def centroid(points: Iterable[LatLng]) -> LatLng | None:
    """Arithmetic mean of the points, used as the initial map view."""
    points = list(points)
    if not points:
        return None
    return LatLng(
        lat=sum(p.lat for p in points) / len(points),
        lng=sum(p.lng for p in points) / len(points),
    )
