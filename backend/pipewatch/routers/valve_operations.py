"""
Valve Operation Endpoints
=========================
Operations log (most recent first by default), data entry for new
operations, and the summary cards above the log.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pipewatch.config import get_settings
from pipewatch.models.database import get_db
from pipewatch.models.survey import Valve, ValveOperation
from pipewatch.schemas.survey import (
    OperationKind,
    OperationStatus,
    ValveOperationCreate,
    ValveOperationListResponse,
    ValveOperationOut,
    ValveOperationStats,
)
from pipewatch.services.listing import build_list_payload
from pipewatch.services.valve_ops import new_operation_id, summarize_operations
from pipewatch.table import SortDirection

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/valve-operations", tags=["Valve Operations"])
settings = get_settings()


# ── Summary cards ─────────────────────────────────────────────────
# Must stay above "/{operation_id}".
@router.get("/stats", response_model=ValveOperationStats)
async def valve_operation_stats(
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(ValveOperation))
    return summarize_operations(result.scalars().all())


# ── Log ───────────────────────────────────────────────────────────
@router.get("/", response_model=ValveOperationListResponse)
async def list_valve_operations(
    valve_id: str | None = None,
    operation: OperationKind | None = None,
    status: OperationStatus | None = None,
    page: int = 1,
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    sort: str | None = "timestamp",
    direction: SortDirection = SortDirection.DESC,
    db: AsyncSession = Depends(get_db),
):
    conditions = []
    if valve_id:
        conditions.append(ValveOperation.valve_id == valve_id)
    if operation:
        conditions.append(ValveOperation.operation == operation)
    if status:
        conditions.append(ValveOperation.status == status)

    result = await db.execute(select(ValveOperation).where(*conditions))
    return build_list_payload(
        result.scalars().all(),
        ValveOperationOut,
        page=page,
        limit=limit,
        sort=sort,
        direction=direction,
    )


# ── Record a new operation ────────────────────────────────────────
@router.post("/", response_model=ValveOperationOut, status_code=201)
async def create_valve_operation(
    req: ValveOperationCreate,
    db: AsyncSession = Depends(get_db),
):
    """Log an operation performed now; it is recorded as COMPLETED."""
    if not await db.get(Valve, req.valve_id):
        raise HTTPException(400, f"Unknown valve '{req.valve_id}'")

    op = ValveOperation(
        id=new_operation_id(),
        valve_id=req.valve_id,
        operation=req.operation,
        status="COMPLETED",
        timestamp=datetime.now(timezone.utc),
        operator=req.operator,
        reason=req.reason,
        notes=req.notes,
        duration=req.duration,
    )
    db.add(op)
    await db.commit()
    await db.refresh(op)

    logger.info("Valve %s: %s by %s (%s)", op.valve_id, op.operation, op.operator, op.id)
    return ValveOperationOut.model_validate(op)


# ── Get one ───────────────────────────────────────────────────────
@router.get("/{operation_id}", response_model=ValveOperationOut)
async def get_valve_operation(
    operation_id: str,
    db: AsyncSession = Depends(get_db),
):
    op = await db.get(ValveOperation, operation_id)
    if not op:
        raise HTTPException(404, "Valve operation not found")
    return ValveOperationOut.model_validate(op)
