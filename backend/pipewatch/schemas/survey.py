"""
Pydantic schemas for API request/response serialization.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

DeviceType = Literal["TRIMBLE_SPS986", "MONITORING_STATION", "SURVEY_EQUIPMENT"]
DeviceStatus = Literal["ACTIVE", "INACTIVE", "MAINTENANCE", "ERROR"]
ValveType = Literal["GATE", "BALL", "BUTTERFLY", "CHECK", "RELIEF"]
ValveStatus = Literal["OPEN", "CLOSED", "PARTIALLY_OPEN", "FAULT"]
OperationKind = Literal["OPEN", "CLOSE", "MAINTAIN", "INSPECT", "REPAIR"]
OperationStatus = Literal["COMPLETED", "FAILED", "IN_PROGRESS", "SCHEDULED"]
SurveyStatus = Literal["ACTIVE", "CLOSED"]
MapLayer = Literal["devices", "valves"]


# ═══════════════════════════════════════════════════════════════════
# Shared
# ═══════════════════════════════════════════════════════════════════
class Coordinates(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class PaginationInfo(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class SortInfo(BaseModel):
    key: str | None
    direction: Literal["asc", "desc"]


# ═══════════════════════════════════════════════════════════════════
# Survey schemas
# ═══════════════════════════════════════════════════════════════════
class SurveyOut(BaseModel):
    id: str
    name: str
    category_name: str = ""
    status: SurveyStatus = "ACTIVE"
    start_date: date | None = None
    end_date: date | None = None

    model_config = {"from_attributes": True}


class CurrentSurveyUpdate(BaseModel):
    survey_id: str = Field(min_length=1)


class ActiveSurveyListResponse(BaseModel):
    current_survey_id: str | None
    surveys: list[SurveyOut]


# ═══════════════════════════════════════════════════════════════════
# Device schemas
# ═══════════════════════════════════════════════════════════════════
class DeviceOut(BaseModel):
    id: str
    name: str
    type: DeviceType
    status: DeviceStatus
    lat: float
    lng: float
    survey_id: str | None = None
    surveyor: str | None = None
    battery_level: float | None = None
    accuracy: float | None = Field(default=None, description="GPS accuracy (m)")
    last_seen: datetime | None = None

    model_config = {"from_attributes": True}


class DeviceCreate(BaseModel):
    id: str | None = Field(default=None, description="Generated when omitted")
    name: str = Field(min_length=1)
    type: DeviceType
    status: DeviceStatus
    coordinates: Coordinates
    survey_id: str | None = None
    surveyor: str | None = None
    battery_level: float | None = Field(default=None, ge=0, le=100)
    accuracy: float | None = Field(default=None, ge=0)


class DeviceUpdate(BaseModel):
    """Partial update; only fields present in the request are applied."""

    name: str | None = Field(default=None, min_length=1)
    type: DeviceType | None = None
    status: DeviceStatus | None = None
    coordinates: Coordinates | None = None
    survey_id: str | None = None
    surveyor: str | None = None
    battery_level: float | None = Field(default=None, ge=0, le=100)
    accuracy: float | None = Field(default=None, ge=0)


class DeviceListResponse(BaseModel):
    data: list[DeviceOut]
    pagination: PaginationInfo
    sort: SortInfo


# ═══════════════════════════════════════════════════════════════════
# Valve schemas
# ═══════════════════════════════════════════════════════════════════
class ValveOut(BaseModel):
    id: str
    name: str
    type: ValveType
    status: ValveStatus
    lat: float
    lng: float
    diameter: float | None = Field(default=None, description="mm")
    pressure: float | None = Field(default=None, description="bar")
    install_date: date | None = None
    last_maintenance: date | None = None
    pipeline_id: str | None = None

    model_config = {"from_attributes": True}


class ValveListResponse(BaseModel):
    data: list[ValveOut]
    pagination: PaginationInfo
    sort: SortInfo


# ═══════════════════════════════════════════════════════════════════
# Valve operation schemas
# ═══════════════════════════════════════════════════════════════════
class ValveOperationOut(BaseModel):
    id: str
    valve_id: str
    operation: OperationKind
    status: OperationStatus
    timestamp: datetime
    operator: str | None = None
    reason: str | None = None
    notes: str | None = None
    duration: int | None = Field(default=None, description="Minutes")

    model_config = {"from_attributes": True}


class ValveOperationCreate(BaseModel):
    valve_id: str = Field(min_length=1)
    operation: OperationKind
    operator: str = Field(min_length=1)
    reason: str | None = None
    notes: str | None = None
    duration: int | None = Field(default=None, ge=0)


class ValveOperationListResponse(BaseModel):
    data: list[ValveOperationOut]
    pagination: PaginationInfo
    sort: SortInfo


class ValveOperationStats(BaseModel):
    total_operations: int
    today_operations: int
    closed_valves: int


# ═══════════════════════════════════════════════════════════════════
# Map clustering
# ═══════════════════════════════════════════════════════════════════
class MapClusterRequest(BaseModel):
    """Visible map rectangle, the live zoom level and the layers shown."""

    min_lat: float = Field(ge=-90, le=90)
    min_lng: float = Field(ge=-180, le=180)
    max_lat: float = Field(ge=-90, le=90)
    max_lng: float = Field(ge=-180, le=180)
    zoom: int = Field(ge=0, le=22, description="Leaflet zoom level")
    layers: list[MapLayer] = Field(default=["devices"], min_length=1)
    survey_id: str | None = Field(default=None, description="Devices only")
    statuses: list[DeviceStatus] | None = None
    valve_statuses: list[ValveStatus] | None = None

    @model_validator(mode="after")
    def bounds_ordered(self) -> "MapClusterRequest":
        if self.min_lat > self.max_lat or self.min_lng > self.max_lng:
            raise ValueError("min_lat/min_lng must not exceed max_lat/max_lng")
        return self


class ClusterOut(BaseModel):
    centroid: Coordinates
    count: int
    label: str | int | None
    is_cluster: bool
    member_ids: list[str]


class LayerClusters(BaseModel):
    layer: MapLayer
    total_points: int
    clusters: list[ClusterOut]


class MapClusterResponse(BaseModel):
    zoom: int
    radius: float = Field(description="Clustering radius in degrees")
    total_points: int
    layers: list[LayerClusters]
