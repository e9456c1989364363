"""
Geographic primitives
=====================
Points and map-viewport rectangles in WGS84 degrees (SRID 4326).

Distances used for marker clustering are computed in raw degree space,
not geodesically.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from shapely.geometry import Point, Polygon, box

WGS84_SRID = 4326


# ── Point ────────────────────────────────────────────────────────
@dataclass(frozen=True, slots=True)
class GeoPoint:
    """A lat/lng pair.  Out-of-range coordinates raise ``ValueError``."""

    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude out of range [-90, 90]: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise ValueError(f"Longitude out of range [-180, 180]: {self.lng}")

    def distance_to(self, other: GeoPoint) -> float:
        """Euclidean distance in degrees."""
        return math.hypot(self.lat - other.lat, self.lng - other.lng)

    def to_shapely(self) -> Point:
        """Shapely point in (x=lng, y=lat) order."""
        return Point(self.lng, self.lat)

    def as_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


# ── Bounding box (map viewport) ───────────────────────────────────
@dataclass(frozen=True, slots=True)
class MapBounds:
    """A lat/lng rectangle, typically the visible map viewport."""

    min_lat: float
    min_lng: float
    max_lat: float
    max_lng: float

    def __post_init__(self) -> None:
        if self.min_lat > self.max_lat or self.min_lng > self.max_lng:
            raise ValueError(
                "MapBounds minimum exceeds maximum: "
                f"({self.min_lat}, {self.min_lng}) > ({self.max_lat}, {self.max_lng})"
            )

    @property
    def width_deg(self) -> float:
        return self.max_lng - self.min_lng

    @property
    def height_deg(self) -> float:
        return self.max_lat - self.min_lat

    @property
    def center(self) -> GeoPoint:
        return GeoPoint(
            lat=(self.min_lat + self.max_lat) / 2,
            lng=(self.min_lng + self.max_lng) / 2,
        )

    def to_shapely(self) -> Polygon:
        return box(self.min_lng, self.min_lat, self.max_lng, self.max_lat)

    def to_wkt(self) -> str:
        """WKT polygon string for PostGIS ST_GeomFromText."""
        return self.to_shapely().wkt

    def contains_point(self, lat: float, lng: float) -> bool:
        return (
            self.min_lat <= lat <= self.max_lat
            and self.min_lng <= lng <= self.max_lng
        )
