"""
Map Endpoints
=============
Clustered device and valve markers for the dashboard map.  The client sends
the visible bounds, live zoom level and visible layers on every camera change.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pipewatch.models.database import get_db
from pipewatch.schemas.survey import MapClusterRequest, MapClusterResponse
from pipewatch.services.map import MapQueryService
from pipewatch.spatial.geo import MapBounds

router = APIRouter(prefix="/map", tags=["Map"])


@router.post("/clusters", response_model=MapClusterResponse)
async def map_clusters(
    req: MapClusterRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Devices and/or valves inside the viewport, grouped into markers for
    ``req.zoom`` one layer at a time.

    Pass ``survey_id`` to restrict the device layer to one survey.
    """
    bounds = MapBounds(
        min_lat=req.min_lat,
        min_lng=req.min_lng,
        max_lat=req.max_lat,
        max_lng=req.max_lng,
    )
    svc = MapQueryService(db)
    return await svc.get_clusters(
        bounds,
        zoom=req.zoom,
        layers=req.layers,
        survey_id=req.survey_id,
        statuses=req.statuses,
        valve_statuses=req.valve_statuses,
    )
