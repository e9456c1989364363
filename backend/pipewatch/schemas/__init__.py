"""Schemas subpackage — Pydantic request/response models."""

from pipewatch.schemas.survey import (
    ActiveSurveyListResponse,
    ClusterOut,
    Coordinates,
    CurrentSurveyUpdate,
    DeviceCreate,
    DeviceListResponse,
    DeviceOut,
    DeviceUpdate,
    LayerClusters,
    MapClusterRequest,
    MapClusterResponse,
    PaginationInfo,
    SortInfo,
    SurveyOut,
    ValveListResponse,
    ValveOperationCreate,
    ValveOperationListResponse,
    ValveOperationOut,
    ValveOperationStats,
    ValveOut,
)

__all__ = [
    "ActiveSurveyListResponse",
    "ClusterOut",
    "Coordinates",
    "CurrentSurveyUpdate",
    "DeviceCreate",
    "DeviceListResponse",
    "DeviceOut",
    "DeviceUpdate",
    "LayerClusters",
    "MapClusterRequest",
    "MapClusterResponse",
    "PaginationInfo",
    "SortInfo",
    "SurveyOut",
    "ValveListResponse",
    "ValveOperationCreate",
    "ValveOperationListResponse",
    "ValveOperationOut",
    "ValveOperationStats",
    "ValveOut",
]
