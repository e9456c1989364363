"""
SQLAlchemy ORM models for surveys, field devices, valves and valve operations.

All spatial columns use GeoAlchemy2 points in WGS84 (SRID 4326).  The plain
``lat`` / ``lng`` columns are the values returned to the dashboard; ``geom``
mirrors them for GIST-indexed viewport queries.

Schema:
    Survey  1──*  Device
    Valve   1──*  ValveOperation
"""

from __future__ import annotations

from datetime import date, datetime

from geoalchemy2 import Geometry
from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pipewatch.models.database import Base


# ── Surveys ───────────────────────────────────────────────────────
class Survey(Base):
    __tablename__ = "surveys"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    category_name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(Text, nullable=False, default="ACTIVE")
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    devices: Mapped[list["Device"]] = relationship(back_populates="survey")


# ── Devices ───────────────────────────────────────────────────────
class Device(Base):
    """A GNSS receiver or monitoring station reporting from the field."""

    __tablename__ = "devices"
    __table_args__ = (
        Index("idx_devices_geom_gist", "geom", postgresql_using="gist"),
        Index("idx_devices_survey_id", "survey_id"),
        CheckConstraint(
            "battery_level IS NULL OR (battery_level >= 0 AND battery_level <= 100)",
            name="ck_devices_battery_range",
        ),
    )

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    survey_id: Mapped[str | None] = mapped_column(
        Text, ForeignKey("surveys.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="ACTIVE")
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    geom = mapped_column(
        Geometry(geometry_type="POINT", srid=4326), nullable=False
    )
    surveyor: Mapped[str | None] = mapped_column(Text, nullable=True)
    battery_level: Mapped[float | None] = mapped_column(Float, nullable=True)
    accuracy: Mapped[float | None] = mapped_column(Float, nullable=True)
    last_seen: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    survey: Mapped["Survey | None"] = relationship(back_populates="devices")


# ── Valves ────────────────────────────────────────────────────────
class Valve(Base):
    """Read-only valve records imported from installation surveys."""

    __tablename__ = "valves"
    __table_args__ = (
        Index("idx_valves_geom_gist", "geom", postgresql_using="gist"),
        Index("idx_valves_pipeline_id", "pipeline_id"),
    )

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="OPEN")
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    geom = mapped_column(
        Geometry(geometry_type="POINT", srid=4326), nullable=False
    )
    diameter: Mapped[float | None] = mapped_column(Float, nullable=True)
    pressure: Mapped[float | None] = mapped_column(Float, nullable=True)
    install_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    last_maintenance: Mapped[date | None] = mapped_column(Date, nullable=True)
    pipeline_id: Mapped[str | None] = mapped_column(Text, nullable=True)

    operations: Mapped[list["ValveOperation"]] = relationship(
        back_populates="valve", cascade="all, delete-orphan"
    )


# ── Valve operations ──────────────────────────────────────────────
class ValveOperation(Base):
    __tablename__ = "valve_operations"
    __table_args__ = (
        Index("idx_valve_ops_valve_id", "valve_id"),
        Index("idx_valve_ops_timestamp", "timestamp"),
    )

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    valve_id: Mapped[str] = mapped_column(
        Text, ForeignKey("valves.id", ondelete="CASCADE"), nullable=False
    )
    operation: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="COMPLETED")
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    operator: Mapped[str | None] = mapped_column(Text, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Minutes.
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)

    valve: Mapped["Valve"] = relationship(back_populates="operations")
