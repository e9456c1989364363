"""
Marker Clustering
=================
Greedy single-pass grouping of map points into visual clusters.

    radius = RadiusTable.radius_for(zoom)

    for each unvisited point p (input order):
        start a cluster {p}
        absorb every later unvisited q with |p - q| <= radius

Distances are Euclidean in degree space.  The pass is O(n²).

The zoom → radius table is hand-tuned configuration.  Lookups never fail:
zooms outside the table use the nearest edge, gaps use the nearest lower
mapped zoom, so the radius never grows as the user zooms in.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from pipewatch.spatial.geo import GeoPoint

logger = logging.getLogger(__name__)

DEFAULT_RADIUS = 0.01

# Hand-tuned for the dashboard maps; zoom 13 is the default view.
DEFAULT_RADIUS_BY_ZOOM: dict[int, float] = {
    8: 0.5,
    9: 0.25,
    10: 0.1,
    11: 0.05,
    12: 0.02,
    13: 0.01,
    14: 0.005,
    15: 0.002,
    16: 0.001,
    17: 0.0005,
    18: 0.0002,
}


# ── Radius table ──────────────────────────────────────────────────
class RadiusTable:
    """
    Zoom level → clustering radius (degrees).

    Parameters
    ----------
    radii : mapping
        Zoom → radius.  Radii must be positive and strictly decreasing as
        zoom increases.
    default : float
        Radius answered when the table is empty.
    """

    def __init__(
        self,
        radii: Mapping[int, float] | None = None,
        default: float = DEFAULT_RADIUS,
    ) -> None:
        if default <= 0:
            raise ValueError(f"Default radius must be > 0, got {default}")
        items = sorted((int(z), float(r)) for z, r in (radii or {}).items())
        for zoom, radius in items:
            if radius <= 0:
                raise ValueError(f"Radius for zoom {zoom} must be > 0, got {radius}")
        for (z1, r1), (z2, r2) in zip(items, items[1:]):
            if r2 >= r1:
                raise ValueError(
                    f"Radius must shrink as zoom grows: zoom {z1} → {r1}, zoom {z2} → {r2}"
                )
        self._zooms = [z for z, _ in items]
        self._radii = [r for _, r in items]
        self.default = default

    def __len__(self) -> int:
        return len(self._zooms)

    def as_dict(self) -> dict[int, float]:
        return dict(zip(self._zooms, self._radii))

    def radius_for(self, zoom: int | float) -> float:
        if not self._zooms:
            return self.default
        idx = bisect.bisect_right(self._zooms, zoom) - 1
        if idx < 0:
            # Zoomed out past the table: most aggressive grouping known.
            return self._radii[0]
        return self._radii[idx]


# ── Cluster ───────────────────────────────────────────────────────
@dataclass(frozen=True)
class Cluster:
    """One rendered marker: a single point or a group of nearby points."""

    centroid: GeoPoint
    members: tuple[Any, ...]
    identities: tuple[Any, ...] = field(default=(), repr=False)

    @property
    def count(self) -> int:
        return len(self.members)

    @property
    def is_cluster(self) -> bool:
        return len(self.members) > 1

    @property
    def label(self) -> Any:
        """Member count for a group, otherwise the sole member's identity."""
        if self.is_cluster:
            return self.count
        return self.identities[0] if self.identities else None


# ── Record adapters ───────────────────────────────────────────────
def default_point_of(record: Any) -> GeoPoint:
    """
    Extract a ``GeoPoint`` from *record*.

    Accepts a ``GeoPoint``; a mapping with ``lat``/``lng`` or with a nested
    ``coordinates`` mapping; or an object with ``lat``/``lng`` (or
    ``coordinates``) attributes.
    """
    if isinstance(record, GeoPoint):
        return record
    if isinstance(record, Mapping):
        source: Any = record.get("coordinates", record)
        if isinstance(source, Mapping):
            return GeoPoint(lat=float(source["lat"]), lng=float(source["lng"]))
        return default_point_of(source)
    coords = getattr(record, "coordinates", None)
    if coords is not None:
        return default_point_of(coords)
    return GeoPoint(lat=float(record.lat), lng=float(record.lng))


def default_identity_of(record: Any) -> Any:
    if isinstance(record, Mapping):
        return record.get("id")
    return getattr(record, "id", None)


# ── Clustering ────────────────────────────────────────────────────
def cluster_points(
    points: Sequence[Any] | Iterable[Any],
    zoom: int | float,
    radius_table: RadiusTable | None = None,
    *,
    point_of: Callable[[Any], GeoPoint] | None = None,
    identity_of: Callable[[Any], Any] | None = None,
) -> list[Cluster]:
    """
    Group *points* into clusters for the given map *zoom*.

    Without *radius_table* the radius comes from ``DEFAULT_RADIUS_BY_ZOOM``.

    Every input record ends up in exactly one cluster.  The input is never
    mutated; clusters hold references to the original records.
    """
    table = radius_table if radius_table is not None else RadiusTable(DEFAULT_RADIUS_BY_ZOOM)
    radius = table.radius_for(zoom)
    return cluster_with_radius(points, radius, point_of=point_of, identity_of=identity_of)


def cluster_with_radius(
    points: Sequence[Any] | Iterable[Any],
    radius: float,
    *,
    point_of: Callable[[Any], GeoPoint] | None = None,
    identity_of: Callable[[Any], Any] | None = None,
) -> list[Cluster]:
    records = list(points)
    if not records:
        return []

    point_of = point_of or default_point_of
    identity_of = identity_of or default_identity_of
    coords = [point_of(r) for r in records]
    visited = [False] * len(records)
    clusters: list[Cluster] = []

    for i, seed in enumerate(coords):
        if visited[i]:
            continue
        visited[i] = True
        member_idx = [i]
        for j in range(i + 1, len(coords)):
            if not visited[j] and seed.distance_to(coords[j]) <= radius:
                visited[j] = True
                member_idx.append(j)

        n = len(member_idx)
        centroid = GeoPoint(
            lat=sum(coords[k].lat for k in member_idx) / n,
            lng=sum(coords[k].lng for k in member_idx) / n,
        )
        clusters.append(
            Cluster(
                centroid=centroid,
                members=tuple(records[k] for k in member_idx),
                identities=tuple(identity_of(records[k]) for k in member_idx),
            )
        )

    logger.debug(
        "Clustered %d points into %d clusters (radius=%s)",
        len(records), len(clusters), radius,
    )
    return clusters
