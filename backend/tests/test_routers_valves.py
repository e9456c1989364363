"""
Tests for pipewatch.routers.valves — valve register endpoints.
"""
from __future__ import annotations

from datetime import date

import pytest

from pipewatch.routers.valves import router
from tests.conftest import (
    SAMPLE_VALVE_ID,
    client_for,
    create_router_app,
    make_valve_row,
    scalars_result,
)


@pytest.fixture()
def client(mock_db):
    return client_for(create_router_app(router), mock_db)


def _valves():
    return [
        make_valve_row(id="VALVE_002", name="Harbour Ball Valve", type="BALL", install_date=date(2021, 3, 4)),
        make_valve_row(id="VALVE_001", name="main street gate valve", install_date=date(2019, 6, 1)),
        make_valve_row(id="VALVE_003", name="Depot Relief", type="RELIEF", install_date=None),
    ]


class TestListValves:
    @pytest.mark.asyncio
    async def test_list_default_page(self, client, mock_db):
        mock_db.execute.return_value = scalars_result(_valves())
        resp = await client.get("/api/valves/")
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["data"]) == 3
        assert data["pagination"]["total"] == 3
        assert data["pagination"]["total_pages"] == 1

    @pytest.mark.asyncio
    async def test_sort_by_name_ignores_case(self, client, mock_db):
        mock_db.execute.return_value = scalars_result(_valves())
        resp = await client.get("/api/valves/?sort=name")
        names = [v["name"] for v in resp.json()["data"]]
        assert names == ["Depot Relief", "Harbour Ball Valve", "main street gate valve"]

    @pytest.mark.asyncio
    async def test_sort_by_date_descending(self, client, mock_db):
        mock_db.execute.return_value = scalars_result(_valves())
        resp = await client.get("/api/valves/?sort=install_date&direction=desc")
        ids = [v["id"] for v in resp.json()["data"]]
        assert ids == ["VALVE_002", "VALVE_001", "VALVE_003"]

    @pytest.mark.asyncio
    async def test_pipeline_filter_reaches_query(self, client, mock_db):
        mock_db.execute.return_value = scalars_result([])
        await client.get("/api/valves/?pipeline_id=PIPE_001&type=GATE")
        sql = str(mock_db.execute.call_args[0][0])
        assert "valves.pipeline_id" in sql
        assert "valves.type" in sql

    @pytest.mark.asyncio
    async def test_invalid_status_rejected(self, client, mock_db):
        resp = await client.get("/api/valves/?status=LEAKING")
        assert resp.status_code == 422


class TestGetValve:
    @pytest.mark.asyncio
    async def test_found(self, client, mock_db):
        mock_db.get.return_value = make_valve_row()
        resp = await client.get(f"/api/valves/{SAMPLE_VALVE_ID}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["type"] == "GATE"
        assert data["install_date"] == "2019-06-01"
        assert data["pipeline_id"] == "PIPE_001"

    @pytest.mark.asyncio
    async def test_not_found(self, client, mock_db):
        mock_db.get.return_value = None
        resp = await client.get("/api/valves/NOPE")
        assert resp.status_code == 404
