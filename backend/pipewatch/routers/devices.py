"""
Device Endpoints
================
Device master list (sorted / paginated through the table controller) and
CRUD for field devices.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from geoalchemy2.shape import from_shape
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pipewatch.config import get_settings
from pipewatch.models.database import get_db
from pipewatch.models.survey import Device, Survey
from pipewatch.schemas.survey import (
    DeviceCreate,
    DeviceListResponse,
    DeviceOut,
    DeviceStatus,
    DeviceType,
    DeviceUpdate,
)
from pipewatch.services.listing import build_list_payload
from pipewatch.spatial.geo import WGS84_SRID, GeoPoint
from pipewatch.table import SortDirection

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/devices", tags=["Devices"])
settings = get_settings()

# Columns an explicit null in a PUT body must not clear.
_NON_NULLABLE = frozenset({"name", "type", "status"})


def _point_geom(lat: float, lng: float):
    return from_shape(GeoPoint(lat=lat, lng=lng).to_shapely(), srid=WGS84_SRID)


async def _require_survey(db: AsyncSession, survey_id: str | None) -> None:
    if survey_id is not None and not await db.get(Survey, survey_id):
        raise HTTPException(400, f"Unknown survey '{survey_id}'")


# ── List ──────────────────────────────────────────────────────────
@router.get("/", response_model=DeviceListResponse)
async def list_devices(
    status: DeviceStatus | None = None,
    device_type: DeviceType | None = Query(None, alias="type"),
    survey_id: str | None = None,
    page: int = 1,
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    sort: str | None = None,
    direction: SortDirection = SortDirection.ASC,
    db: AsyncSession = Depends(get_db),
):
    """
    List devices, filtered in SQL, then sorted and paginated in memory.

    ``page`` outside the valid range is clamped.  Any ``sort`` field is
    accepted; rows lacking it sort first (ascending).
    """
    conditions = []
    if status:
        conditions.append(Device.status == status)
    if device_type:
        conditions.append(Device.type == device_type)
    if survey_id:
        conditions.append(Device.survey_id == survey_id)

    result = await db.execute(select(Device).where(*conditions))
    rows = result.scalars().all()

    return build_list_payload(
        rows, DeviceOut, page=page, limit=limit, sort=sort, direction=direction
    )


# ── Get one ───────────────────────────────────────────────────────
@router.get("/{device_id}", response_model=DeviceOut)
async def get_device(
    device_id: str,
    db: AsyncSession = Depends(get_db),
):
    device = await db.get(Device, device_id)
    if not device:
        raise HTTPException(404, "Device not found")
    return DeviceOut.model_validate(device)


# ── Create ────────────────────────────────────────────────────────
@router.post("/", response_model=DeviceOut, status_code=201)
async def create_device(
    req: DeviceCreate,
    db: AsyncSession = Depends(get_db),
):
    device_id = req.id or f"DEVICE_{uuid.uuid4().hex[:12].upper()}"
    if await db.get(Device, device_id):
        raise HTTPException(409, f"Device '{device_id}' already exists")
    await _require_survey(db, req.survey_id)

    device = Device(
        id=device_id,
        survey_id=req.survey_id,
        name=req.name,
        type=req.type,
        status=req.status,
        lat=req.coordinates.lat,
        lng=req.coordinates.lng,
        geom=_point_geom(req.coordinates.lat, req.coordinates.lng),
        surveyor=req.surveyor,
        battery_level=req.battery_level,
        accuracy=req.accuracy,
        last_seen=datetime.now(timezone.utc),
    )
    db.add(device)
    await db.commit()
    await db.refresh(device)

    logger.info("Created device %s (%s)", device.id, device.type)
    return DeviceOut.model_validate(device)


# ── Update ────────────────────────────────────────────────────────
@router.put("/{device_id}", response_model=DeviceOut)
async def update_device(
    device_id: str,
    req: DeviceUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Apply only the fields present in the request body."""
    device = await db.get(Device, device_id)
    if not device:
        raise HTTPException(404, "Device not found")

    changes = req.model_dump(exclude_unset=True)
    if "survey_id" in changes:
        await _require_survey(db, changes["survey_id"])

    coords = changes.pop("coordinates", None)
    if coords is not None:
        device.lat = coords["lat"]
        device.lng = coords["lng"]
        device.geom = _point_geom(coords["lat"], coords["lng"])
    for field, value in changes.items():
        if value is None and field in _NON_NULLABLE:
            continue
        setattr(device, field, value)

    await db.commit()
    await db.refresh(device)

    logger.info("Updated device %s (%s)", device_id, ", ".join(sorted(req.model_fields_set)))
    return DeviceOut.model_validate(device)


# ── Delete ────────────────────────────────────────────────────────
@router.delete("/{device_id}", status_code=204)
async def delete_device(
    device_id: str,
    db: AsyncSession = Depends(get_db),
):
    device = await db.get(Device, device_id)
    if not device:
        raise HTTPException(404, "Device not found")

    await db.delete(device)
    await db.commit()
    logger.info("Deleted device %s", device_id)
