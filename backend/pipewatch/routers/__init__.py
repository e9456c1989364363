"""Routers subpackage — HTTP layer for all API endpoints."""

from pipewatch.routers import devices, map, surveys, valve_operations, valves

__all__ = ["devices", "map", "surveys", "valve_operations", "valves"]
