"""
Tests for pipewatch.models.survey — ORM model definitions.
"""
from __future__ import annotations

from pipewatch.models.survey import Device, Survey, Valve, ValveOperation


def _columns(model) -> set[str]:
    return {c.name for c in model.__table__.columns}


def _index_names(model) -> set[str]:
    return {i.name for i in model.__table__.indexes}


class TestSurveyModel:
    def test_tablename(self):
        assert Survey.__tablename__ == "surveys"

    def test_columns_exist(self):
        expected = {"id", "name", "category_name", "status", "start_date", "end_date", "created_at"}
        assert expected.issubset(_columns(Survey))

    def test_has_devices_relationship(self):
        assert hasattr(Survey, "devices")


class TestDeviceModel:
    def test_tablename(self):
        assert Device.__tablename__ == "devices"

    def test_columns_exist(self):
        expected = {
            "id", "survey_id", "name", "type", "status",
            "lat", "lng", "geom",
            "surveyor", "battery_level", "accuracy", "last_seen", "created_at",
        }
        assert expected.issubset(_columns(Device))

    def test_geom_is_wgs84_point(self):
        geom = Device.__table__.c.geom.type
        assert geom.geometry_type == "POINT"
        assert geom.srid == 4326

    def test_gist_index(self):
        assert "idx_devices_geom_gist" in _index_names(Device)

    def test_survey_fk_sets_null(self):
        fk = next(iter(Device.__table__.c.survey_id.foreign_keys))
        assert fk.column.table.name == "surveys"
        assert fk.ondelete == "SET NULL"

    def test_battery_check_constraint(self):
        names = [c.name for c in Device.__table__.constraints if getattr(c, "name", None)]
        assert "ck_devices_battery_range" in names


class TestValveModel:
    def test_tablename(self):
        assert Valve.__tablename__ == "valves"

    def test_columns_exist(self):
        expected = {
            "id", "name", "type", "status", "lat", "lng", "geom",
            "diameter", "pressure", "install_date", "last_maintenance", "pipeline_id",
        }
        assert expected.issubset(_columns(Valve))

    def test_has_operations_relationship(self):
        assert hasattr(Valve, "operations")


class TestValveOperationModel:
    def test_tablename(self):
        assert ValveOperation.__tablename__ == "valve_operations"

    def test_columns_exist(self):
        expected = {
            "id", "valve_id", "operation", "status", "timestamp",
            "operator", "reason", "notes", "duration",
        }
        assert expected.issubset(_columns(ValveOperation))

    def test_valve_fk_cascades(self):
        fk = next(iter(ValveOperation.__table__.c.valve_id.foreign_keys))
        assert fk.ondelete == "CASCADE"

    def test_timestamp_index(self):
        assert "idx_valve_ops_timestamp" in _index_names(ValveOperation)
