"""
Tests for pipewatch.routers.devices — device list and CRUD endpoints.
"""
from __future__ import annotations

import pytest

from pipewatch.models.survey import Device, Survey
from pipewatch.routers.devices import router
from tests.conftest import (
    SAMPLE_DEVICE_ID,
    SAMPLE_SURVEY_ID,
    client_for,
    create_router_app,
    make_device_row,
    make_survey_row,
    scalars_result,
)


@pytest.fixture()
def client(mock_db):
    return client_for(create_router_app(router), mock_db)


def _get_by_model(devices=None, surveys=None):
    """side_effect for ``db.get`` that dispatches on the model class."""
    devices = devices or {}
    surveys = surveys or {}

    async def _get(model, key):
        if model is Device:
            return devices.get(key)
        if model is Survey:
            return surveys.get(key)
        return None

    return _get


def _fleet():
    return [
        make_device_row(id="TRIMBLE_003", name="Unit C", battery_level=40.0),
        make_device_row(id="TRIMBLE_001", name="Unit A", battery_level=89.0),
        make_device_row(id="STATION_001", name="Station", type="MONITORING_STATION", battery_level=None),
        make_device_row(id="TRIMBLE_002", name="Unit B", battery_level=12.5),
    ]


NEW_DEVICE = {
    "name": "Trimble SPS986 Unit 004",
    "type": "TRIMBLE_SPS986",
    "status": "ACTIVE",
    "coordinates": {"lat": 19.08, "lng": 72.88},
    "survey_id": SAMPLE_SURVEY_ID,
    "surveyor": "Priya Sharma",
    "battery_level": 95,
    "accuracy": 0.02,
}


# ═══════════════════════════════════════════════════════════════════
# GET /devices/
# ═══════════════════════════════════════════════════════════════════
class TestListDevices:
    @pytest.mark.asyncio
    async def test_empty(self, client, mock_db):
        mock_db.execute.return_value = scalars_result([])
        resp = await client.get("/api/devices/")
        assert resp.status_code == 200
        data = resp.json()
        assert data["data"] == []
        assert data["pagination"] == {"page": 1, "limit": 10, "total": 0, "total_pages": 0}
        assert data["sort"] == {"key": None, "direction": "asc"}

    @pytest.mark.asyncio
    async def test_unsorted_keeps_query_order(self, client, mock_db):
        mock_db.execute.return_value = scalars_result(_fleet())
        resp = await client.get("/api/devices/")
        ids = [d["id"] for d in resp.json()["data"]]
        assert ids == ["TRIMBLE_003", "TRIMBLE_001", "STATION_001", "TRIMBLE_002"]

    @pytest.mark.asyncio
    async def test_sorted_and_paginated(self, client, mock_db):
        mock_db.execute.return_value = scalars_result(_fleet())
        resp = await client.get("/api/devices/?sort=id&limit=3&page=2")
        data = resp.json()
        assert [d["id"] for d in data["data"]] == ["TRIMBLE_003"]
        assert data["pagination"] == {"page": 2, "limit": 3, "total": 4, "total_pages": 2}

    @pytest.mark.asyncio
    async def test_descending_numeric_sort_missing_last(self, client, mock_db):
        mock_db.execute.return_value = scalars_result(_fleet())
        resp = await client.get("/api/devices/?sort=battery_level&direction=desc")
        ids = [d["id"] for d in resp.json()["data"]]
        assert ids == ["TRIMBLE_001", "TRIMBLE_003", "TRIMBLE_002", "STATION_001"]
        assert resp.json()["sort"] == {"key": "battery_level", "direction": "desc"}

    @pytest.mark.asyncio
    async def test_page_beyond_end_is_clamped(self, client, mock_db):
        mock_db.execute.return_value = scalars_result(_fleet())
        resp = await client.get("/api/devices/?limit=3&page=99")
        assert resp.json()["pagination"]["page"] == 2

    @pytest.mark.asyncio
    async def test_limit_zero_rejected(self, client, mock_db):
        resp = await client.get("/api/devices/?limit=0")
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_limit_above_max_rejected(self, client, mock_db):
        resp = await client.get("/api/devices/?limit=1000")
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_bad_direction_rejected(self, client, mock_db):
        resp = await client.get("/api/devices/?direction=sideways")
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_filters_reach_query(self, client, mock_db):
        mock_db.execute.return_value = scalars_result([])
        resp = await client.get(
            f"/api/devices/?status=ACTIVE&type=TRIMBLE_SPS986&survey_id={SAMPLE_SURVEY_ID}"
        )
        assert resp.status_code == 200
        stmt = mock_db.execute.call_args[0][0]
        sql = str(stmt)
        assert "devices.status" in sql
        assert "devices.type" in sql
        assert "devices.survey_id" in sql

    @pytest.mark.asyncio
    async def test_unknown_type_filter_rejected(self, client, mock_db):
        resp = await client.get("/api/devices/?type=TOASTER")
        assert resp.status_code == 422


# ═══════════════════════════════════════════════════════════════════
# GET /devices/{device_id}
# ═══════════════════════════════════════════════════════════════════
class TestGetDevice:
    @pytest.mark.asyncio
    async def test_found(self, client, mock_db):
        mock_db.get.return_value = make_device_row()
        resp = await client.get(f"/api/devices/{SAMPLE_DEVICE_ID}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["id"] == SAMPLE_DEVICE_ID
        assert data["lat"] == 19.076
        assert data["surveyor"] == "Rajesh Kumar"

    @pytest.mark.asyncio
    async def test_not_found(self, client, mock_db):
        mock_db.get.return_value = None
        resp = await client.get("/api/devices/NOPE")
        assert resp.status_code == 404


# ═══════════════════════════════════════════════════════════════════
# POST /devices/
# ═══════════════════════════════════════════════════════════════════
class TestCreateDevice:
    @pytest.mark.asyncio
    async def test_create_generates_id(self, client, mock_db):
        mock_db.get.side_effect = _get_by_model(surveys={SAMPLE_SURVEY_ID: make_survey_row()})
        resp = await client.post("/api/devices/", json=NEW_DEVICE)
        assert resp.status_code == 201
        data = resp.json()
        assert data["id"].startswith("DEVICE_")
        assert data["lat"] == 19.08
        assert data["lng"] == 72.88
        assert data["last_seen"] is not None

        added = mock_db.add.call_args[0][0]
        assert isinstance(added, Device)
        assert added.geom is not None
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_with_explicit_id(self, client, mock_db):
        mock_db.get.side_effect = _get_by_model(surveys={SAMPLE_SURVEY_ID: make_survey_row()})
        resp = await client.post("/api/devices/", json={**NEW_DEVICE, "id": "TRIMBLE_004"})
        assert resp.status_code == 201
        assert resp.json()["id"] == "TRIMBLE_004"

    @pytest.mark.asyncio
    async def test_duplicate_id_conflicts(self, client, mock_db):
        mock_db.get.side_effect = _get_by_model(devices={SAMPLE_DEVICE_ID: make_device_row()})
        resp = await client.post("/api/devices/", json={**NEW_DEVICE, "id": SAMPLE_DEVICE_ID})
        assert resp.status_code == 409
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_survey_rejected(self, client, mock_db):
        mock_db.get.side_effect = _get_by_model()
        resp = await client.post("/api/devices/", json=NEW_DEVICE)
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_out_of_range_coordinates_rejected(self, client, mock_db):
        body = {**NEW_DEVICE, "coordinates": {"lat": 91, "lng": 72.88}}
        resp = await client.post("/api/devices/", json=body)
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_battery_above_100_rejected(self, client, mock_db):
        resp = await client.post("/api/devices/", json={**NEW_DEVICE, "battery_level": 120})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_missing_name_rejected(self, client, mock_db):
        body = {k: v for k, v in NEW_DEVICE.items() if k != "name"}
        resp = await client.post("/api/devices/", json=body)
        assert resp.status_code == 422


# ═══════════════════════════════════════════════════════════════════
# PUT /devices/{device_id}
# ═══════════════════════════════════════════════════════════════════
class TestUpdateDevice:
    @pytest.mark.asyncio
    async def test_partial_update(self, client, mock_db):
        device = make_device_row()
        mock_db.get.side_effect = _get_by_model(devices={SAMPLE_DEVICE_ID: device})
        resp = await client.put(
            f"/api/devices/{SAMPLE_DEVICE_ID}", json={"status": "MAINTENANCE"}
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "MAINTENANCE"
        assert device.name == "Trimble SPS986 Unit 001"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_coordinates_move_device(self, client, mock_db):
        device = make_device_row()
        mock_db.get.side_effect = _get_by_model(devices={SAMPLE_DEVICE_ID: device})
        resp = await client.put(
            f"/api/devices/{SAMPLE_DEVICE_ID}",
            json={"coordinates": {"lat": 19.1, "lng": 72.9}},
        )
        assert resp.status_code == 200
        assert resp.json()["lat"] == 19.1
        assert device.lng == 72.9

    @pytest.mark.asyncio
    async def test_null_name_ignored(self, client, mock_db):
        device = make_device_row()
        mock_db.get.side_effect = _get_by_model(devices={SAMPLE_DEVICE_ID: device})
        resp = await client.put(
            f"/api/devices/{SAMPLE_DEVICE_ID}", json={"name": None, "surveyor": None}
        )
        assert resp.status_code == 200
        assert device.name == "Trimble SPS986 Unit 001"
        assert device.surveyor is None

    @pytest.mark.asyncio
    async def test_reassign_to_unknown_survey_rejected(self, client, mock_db):
        mock_db.get.side_effect = _get_by_model(devices={SAMPLE_DEVICE_ID: make_device_row()})
        resp = await client.put(
            f"/api/devices/{SAMPLE_DEVICE_ID}", json={"survey_id": "SUR_404"}
        )
        assert resp.status_code == 400
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_detach_from_survey(self, client, mock_db):
        device = make_device_row()
        mock_db.get.side_effect = _get_by_model(devices={SAMPLE_DEVICE_ID: device})
        resp = await client.put(f"/api/devices/{SAMPLE_DEVICE_ID}", json={"survey_id": None})
        assert resp.status_code == 200
        assert device.survey_id is None

    @pytest.mark.asyncio
    async def test_not_found(self, client, mock_db):
        mock_db.get.side_effect = _get_by_model()
        resp = await client.put("/api/devices/NOPE", json={"status": "ACTIVE"})
        assert resp.status_code == 404


# ═══════════════════════════════════════════════════════════════════
# DELETE /devices/{device_id}
# ═══════════════════════════════════════════════════════════════════
class TestDeleteDevice:
    @pytest.mark.asyncio
    async def test_delete(self, client, mock_db):
        device = make_device_row()
        mock_db.get.return_value = device
        resp = await client.delete(f"/api/devices/{SAMPLE_DEVICE_ID}")
        assert resp.status_code == 204
        mock_db.delete.assert_awaited_once_with(device)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_not_found(self, client, mock_db):
        mock_db.get.return_value = None
        resp = await client.delete("/api/devices/NOPE")
        assert resp.status_code == 404
