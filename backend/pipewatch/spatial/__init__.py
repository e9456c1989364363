"""Spatial subpackage — geographic primitives and marker clustering."""

from pipewatch.spatial.cluster import Cluster, RadiusTable, cluster_points
from pipewatch.spatial.geo import GeoPoint, MapBounds

__all__ = [
    "Cluster",
    "GeoPoint",
    "MapBounds",
    "RadiusTable",
    "cluster_points",
]
