"""Models subpackage."""

from pipewatch.models.database import Base, engine, async_session_factory, get_db, init_models
from pipewatch.models.survey import Device, Survey, Valve, ValveOperation

__all__ = [
    "Base",
    "engine",
    "async_session_factory",
    "get_db",
    "init_models",
    "Device",
    "Survey",
    "Valve",
    "ValveOperation",
]
