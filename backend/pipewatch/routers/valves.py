"""
Valve Endpoints
===============
Read-only valve register sourced from installation surveys.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pipewatch.config import get_settings
from pipewatch.models.database import get_db
from pipewatch.models.survey import Valve
from pipewatch.schemas.survey import ValveListResponse, ValveOut, ValveStatus, ValveType
from pipewatch.services.listing import build_list_payload
from pipewatch.table import SortDirection

router = APIRouter(prefix="/valves", tags=["Valves"])
settings = get_settings()


@router.get("/", response_model=ValveListResponse)
async def list_valves(
    status: ValveStatus | None = None,
    valve_type: ValveType | None = Query(None, alias="type"),
    pipeline_id: str | None = None,
    page: int = 1,
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    sort: str | None = None,
    direction: SortDirection = SortDirection.ASC,
    db: AsyncSession = Depends(get_db),
):
    conditions = []
    if status:
        conditions.append(Valve.status == status)
    if valve_type:
        conditions.append(Valve.type == valve_type)
    if pipeline_id:
        conditions.append(Valve.pipeline_id == pipeline_id)

    result = await db.execute(select(Valve).where(*conditions))
    return build_list_payload(
        result.scalars().all(),
        ValveOut,
        page=page,
        limit=limit,
        sort=sort,
        direction=direction,
    )


@router.get("/{valve_id}", response_model=ValveOut)
async def get_valve(
    valve_id: str,
    db: AsyncSession = Depends(get_db),
):
    valve = await db.get(Valve, valve_id)
    if not valve:
        raise HTTPException(404, "Valve not found")
    return ValveOut.model_validate(valve)
