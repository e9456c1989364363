"""
Pipewatch — Configuration via pydantic-settings.

Environment variables (``PIPEWATCH_*``) override defaults.  The zoom → radius
table behind marker clustering may be replaced wholesale, e.g.
``PIPEWATCH_CLUSTER_RADIUS_BY_ZOOM='{"10": 0.1, "14": 0.004}'``.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import ClassVar

from pydantic_settings import BaseSettings, SettingsConfigDict

from pipewatch.spatial.cluster import DEFAULT_RADIUS_BY_ZOOM


class Settings(BaseSettings):
    env_path: ClassVar[str] = str(Path(__file__).resolve().parents[2] / ".env")
    model_config = SettingsConfigDict(
        env_file=env_path,
        env_file_encoding="utf-8",
        env_prefix="PIPEWATCH_",
        # Ignore unrelated environment variables (for example the
        # POSTGRES_* variables used by Docker) so loading the env_file
        # does not cause validation errors for unknown keys.
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────
    app_name: str = "Pipewatch"
    debug: bool = False

    # ── Database (PostGIS) ─────────────────────────────────────────
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "pipewatch"
    db_password: str = "pipewatch_secret"
    db_name: str = "pipewatch"

    @property
    def database_url(self) -> str:
        """Async SQLAlchemy connection string (asyncpg driver)."""
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # ── CORS ───────────────────────────────────────────────────────
    # Allowed CORS origins (the Vite dev server and the built dashboard).
    cors_origins: str = "http://localhost:5173,http://localhost:3000,http://localhost:8080"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse the comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    # ── List screens ───────────────────────────────────────────────
    default_page_size: int = 10
    max_page_size: int = 100

    # ── Map clustering ─────────────────────────────────────────────
    # Radius in degrees of lat/lng per Leaflet zoom level.  Must shrink
    # as zoom grows.
    cluster_radius_by_zoom: dict[int, float] = dict(DEFAULT_RADIUS_BY_ZOOM)
    # Used only when the table above is empty.
    cluster_default_radius: float = 0.01

    # Safety cap on points loaded for a single map request.
    max_map_points: int = 5_000

    # ── Active survey ──────────────────────────────────────────────
    # Seconds between refreshes of the active-survey list.
    survey_poll_interval_s: float = 30.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
