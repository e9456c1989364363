"""
Map Query Service
=================
PostGIS-backed device and valve lookups for the dashboard map, followed by
zoom-aware marker clustering.

Viewport queries use ST_MakeEnvelope + ST_Intersects against the GIST
indexes on ``devices.geom`` and ``valves.geom`` (SRID 4326).  Each map layer
is clustered on its own, so device and valve markers never merge.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from geoalchemy2.functions import ST_Intersects, ST_MakeEnvelope
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pipewatch.config import get_settings
from pipewatch.models.survey import Device, Valve
from pipewatch.schemas.survey import (
    ClusterOut,
    Coordinates,
    LayerClusters,
    MapClusterResponse,
)
from pipewatch.spatial.cluster import RadiusTable, cluster_with_radius
from pipewatch.spatial.geo import WGS84_SRID, MapBounds

logger = logging.getLogger(__name__)
settings = get_settings()


def radius_table_from_settings() -> RadiusTable:
    return RadiusTable(
        settings.cluster_radius_by_zoom,
        default=settings.cluster_default_radius,
    )


def _envelope(bounds: MapBounds):
    return ST_MakeEnvelope(
        bounds.min_lng, bounds.min_lat,
        bounds.max_lng, bounds.max_lat,
        WGS84_SRID,
    )


def _point_records(result) -> list[dict]:
    return [
        {
            "id": row.id,
            "name": row.name,
            "status": row.status,
            "lat": row.lat,
            "lng": row.lng,
        }
        for row in result.all()
    ]


class MapQueryService:
    """
    Loads map points through the injected AsyncSession and clusters them.

    Parameters
    ----------
    session : AsyncSession
    radius_table : RadiusTable, optional
        Defaults to the table from ``Settings.cluster_radius_by_zoom``.
    """

    def __init__(
        self,
        session: AsyncSession,
        radius_table: RadiusTable | None = None,
    ) -> None:
        self.session = session
        self.radius_table = radius_table or radius_table_from_settings()

    # ── Viewport queries ──────────────────────────────────────

    async def get_device_points(
        self,
        bounds: MapBounds,
        survey_id: str | None = None,
        statuses: Sequence[str] | None = None,
        max_results: int | None = None,
    ) -> list[dict]:
        """
        Fetch devices whose position falls inside *bounds*.

        Returns plain ``{"id", "name", "status", "lat", "lng"}`` records in
        a stable order (by id) so clustering is reproducible.
        """
        conditions = [ST_Intersects(_envelope(bounds), Device.geom)]
        if survey_id is not None:
            conditions.append(Device.survey_id == survey_id)
        if statuses:
            conditions.append(Device.status.in_(list(statuses)))

        stmt = (
            select(Device.id, Device.name, Device.status, Device.lat, Device.lng)
            .where(*conditions)
            .order_by(Device.id)
            .limit(max_results or settings.max_map_points)
        )
        result = await self.session.execute(stmt)
        return _point_records(result)

    async def get_valve_points(
        self,
        bounds: MapBounds,
        statuses: Sequence[str] | None = None,
        max_results: int | None = None,
    ) -> list[dict]:
        """Valves inside *bounds*, same record shape and ordering as devices."""
        conditions = [ST_Intersects(_envelope(bounds), Valve.geom)]
        if statuses:
            conditions.append(Valve.status.in_(list(statuses)))

        stmt = (
            select(Valve.id, Valve.name, Valve.status, Valve.lat, Valve.lng)
            .where(*conditions)
            .order_by(Valve.id)
            .limit(max_results or settings.max_map_points)
        )
        result = await self.session.execute(stmt)
        return _point_records(result)

    # ── Clusters ──────────────────────────────────────────────

    async def get_clusters(
        self,
        bounds: MapBounds,
        zoom: int,
        layers: Sequence[str] = ("devices",),
        survey_id: str | None = None,
        statuses: Sequence[str] | None = None,
        valve_statuses: Sequence[str] | None = None,
    ) -> MapClusterResponse:
        """
        Cluster every requested layer at *zoom*.

        Layers come back in request order, each listed once.  ``survey_id``
        and ``statuses`` filter devices; ``valve_statuses`` filters valves.
        """
        radius = self.radius_table.radius_for(zoom)
        out: list[LayerClusters] = []
        for layer in dict.fromkeys(layers):
            if layer == "devices":
                points = await self.get_device_points(bounds, survey_id, statuses)
            elif layer == "valves":
                points = await self.get_valve_points(bounds, valve_statuses)
            else:
                raise ValueError(f"Unknown map layer: {layer!r}")

            clusters = cluster_with_radius(points, radius)
            logger.debug(
                "Map zoom=%d %s: %d points → %d markers",
                zoom, layer, len(points), len(clusters),
            )
            out.append(
                LayerClusters(
                    layer=layer,
                    total_points=len(points),
                    clusters=[
                        ClusterOut(
                            centroid=Coordinates(**c.centroid.as_dict()),
                            count=c.count,
                            label=c.label,
                            is_cluster=c.is_cluster,
                            member_ids=[str(i) for i in c.identities],
                        )
                        for c in clusters
                    ],
                )
            )

        return MapClusterResponse(
            zoom=zoom,
            radius=radius,
            total_points=sum(layer.total_points for layer in out),
            layers=out,
        )
