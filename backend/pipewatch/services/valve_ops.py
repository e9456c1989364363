"""
Valve operation helpers: id generation and the summary cards shown above
the valve operations log.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import date, datetime, timezone
from typing import Any

from pipewatch.schemas.survey import ValveOperationStats

# Operations that change a valve's open/closed state.
_STATE_CHANGING = {"OPEN", "CLOSE"}


def new_operation_id() -> str:
    return f"OP-{uuid.uuid4().hex[:12].upper()}"


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _as_utc(ts: datetime) -> datetime:
    return ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts.astimezone(timezone.utc)


def closed_valve_ids(operations: Iterable[Any]) -> set[str]:
    """
    Valves whose most recent completed OPEN/CLOSE operation is CLOSE.

    Valves with no state-changing history count as open.
    """
    latest: dict[str, tuple[datetime, str]] = {}
    for op in operations:
        kind = _field(op, "operation")
        if kind not in _STATE_CHANGING or _field(op, "status") != "COMPLETED":
            continue
        valve_id = _field(op, "valve_id")
        ts = _as_utc(_field(op, "timestamp"))
        seen = latest.get(valve_id)
        if seen is None or ts >= seen[0]:
            latest[valve_id] = (ts, kind)
    return {vid for vid, (_, kind) in latest.items() if kind == "CLOSE"}


def summarize_operations(
    operations: Iterable[Any],
    today: date | None = None,
) -> ValveOperationStats:
    """Total operations, operations logged today (UTC), and closed valves."""
    ops = list(operations)
    today = today or datetime.now(timezone.utc).date()
    return ValveOperationStats(
        total_operations=len(ops),
        today_operations=sum(
            1 for op in ops if _as_utc(_field(op, "timestamp")).date() == today
        ),
        closed_valves=len(closed_valve_ids(ops)),
    )
