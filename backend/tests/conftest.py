"""
Shared fixtures for the Pipewatch test suite.

This conftest provides:
- Reusable ORM-row factories (MagicMocks shaped like the models)
- A router test-app builder with a mock DB session override
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import APIRouter, FastAPI
from httpx import ASGITransport, AsyncClient

# ---------------------------------------------------------------------------
# Sample data factories
# ---------------------------------------------------------------------------
SAMPLE_SURVEY_ID = "SUR_001"
SAMPLE_DEVICE_ID = "TRIMBLE_001"
SAMPLE_VALVE_ID = "VALVE_001"


def make_survey_row(
    *,
    id: str = SAMPLE_SURVEY_ID,
    name: str = "Mumbai Gas Main Line Survey",
    category_name: str = "Gas Pipeline",
    status: str = "ACTIVE",
    start_date: date | None = date(2024, 1, 15),
    end_date: date | None = date(2024, 3, 15),
) -> MagicMock:
    """Return a mock that behaves like a Survey ORM object."""
    survey = MagicMock()
    survey.id = id
    survey.name = name
    survey.category_name = category_name
    survey.status = status
    survey.start_date = start_date
    survey.end_date = end_date
    return survey


def make_device_row(
    *,
    id: str = SAMPLE_DEVICE_ID,
    name: str = "Trimble SPS986 Unit 001",
    type: str = "TRIMBLE_SPS986",
    status: str = "ACTIVE",
    lat: float = 19.076,
    lng: float = 72.8777,
    survey_id: str | None = SAMPLE_SURVEY_ID,
    surveyor: str | None = "Rajesh Kumar",
    battery_level: float | None = 89.0,
    accuracy: float | None = 0.02,
    last_seen: datetime | None = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc),
) -> MagicMock:
    """Return a mock that behaves like a Device ORM object."""
    device = MagicMock()
    device.id = id
    device.name = name
    device.type = type
    device.status = status
    device.lat = lat
    device.lng = lng
    device.survey_id = survey_id
    device.surveyor = surveyor
    device.battery_level = battery_level
    device.accuracy = accuracy
    device.last_seen = last_seen
    return device


def make_valve_row(
    *,
    id: str = SAMPLE_VALVE_ID,
    name: str = "Main Street Gate Valve",
    type: str = "GATE",
    status: str = "OPEN",
    lat: float = 19.08,
    lng: float = 72.88,
    diameter: float | None = 200.0,
    pressure: float | None = 4.0,
    install_date: date | None = date(2019, 6, 1),
    last_maintenance: date | None = None,
    pipeline_id: str | None = "PIPE_001",
) -> MagicMock:
    """Return a mock that behaves like a Valve ORM object."""
    valve = MagicMock()
    valve.id = id
    valve.name = name
    valve.type = type
    valve.status = status
    valve.lat = lat
    valve.lng = lng
    valve.diameter = diameter
    valve.pressure = pressure
    valve.install_date = install_date
    valve.last_maintenance = last_maintenance
    valve.pipeline_id = pipeline_id
    return valve


def make_operation_row(
    *,
    id: str = "OP-001",
    valve_id: str = SAMPLE_VALVE_ID,
    operation: str = "CLOSE",
    status: str = "COMPLETED",
    timestamp: datetime = datetime(2024, 1, 15, 14, 30, tzinfo=timezone.utc),
    operator: str | None = "John Smith",
    reason: str | None = "Emergency closure due to gas leak",
    notes: str | None = None,
    duration: int | None = None,
) -> MagicMock:
    """Return a mock that behaves like a ValveOperation ORM object."""
    op = MagicMock()
    op.id = id
    op.valve_id = valve_id
    op.operation = operation
    op.status = status
    op.timestamp = timestamp
    op.operator = operator
    op.reason = reason
    op.notes = notes
    op.duration = duration
    return op


def scalars_result(rows: list) -> MagicMock:
    """A mock ``Result`` whose ``.scalars().all()`` returns *rows*."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = rows
    return result


# ---------------------------------------------------------------------------
# Router test harness
# ---------------------------------------------------------------------------
def create_router_app(router: APIRouter) -> FastAPI:
    app = FastAPI()
    app.include_router(router, prefix="/api")
    return app


@pytest.fixture()
def mock_db():
    db = AsyncMock()
    # Session.add is synchronous.
    db.add = MagicMock()
    return db


def client_for(app: FastAPI, mock_db) -> AsyncClient:
    from pipewatch.models.database import get_db

    async def override_get_db():
        yield mock_db

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://testserver")
