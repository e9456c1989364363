"""
Pipewatch — FastAPI Application
===============================
Backend for the gas-pipeline survey dashboard: device and valve registers,
the valve operations log, clustered map markers and active-survey tracking,
backed by PostGIS.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pipewatch.config import get_settings
from pipewatch.routers import devices, map, surveys, valve_operations, valves

logger = logging.getLogger(__name__)
settings = get_settings()


# ── Lifespan (startup / shutdown) ─────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
        - Verify DB connectivity and create tables.
        - Start polling active surveys.
    Shutdown:
        - Stop the poller.
        - Dispose engine pool.
    """
    logger.info("Pipewatch starting up...")

    from sqlalchemy import text

    from pipewatch.models.database import engine as db_engine
    from pipewatch.models.database import init_models

    async with db_engine.begin() as conn:
        result = await conn.execute(text("SELECT PostGIS_Version()"))
        logger.info("PostGIS connected (version=%s)", result.scalar())

    await init_models()
    logger.info("Database schema verified / created.")

    from pipewatch.services.survey import get_survey_tracker

    tracker = get_survey_tracker()
    poller = asyncio.create_task(
        tracker.run(settings.survey_poll_interval_s), name="survey-poller"
    )
    logger.info(
        "Polling active surveys every %.0fs", settings.survey_poll_interval_s
    )

    yield

    poller.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await poller
    await db_engine.dispose()
    logger.info("Pipewatch shut down.")


# ── App factory ───────────────────────────────────────────────────
def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description=(
            "Monitoring and data-entry backend for gas-pipeline survey "
            "operations: devices, valves, valve operations and map clusters."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS for the React dashboard (configurable via PIPEWATCH_CORS_ORIGINS).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(devices.router, prefix="/api")
    app.include_router(valves.router, prefix="/api")
    app.include_router(valve_operations.router, prefix="/api")
    app.include_router(map.router, prefix="/api")
    app.include_router(surveys.router, prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": settings.app_name}

    return app


# ── Module-level app instance (for `uvicorn pipewatch.main:app`) ──
app = create_app()  # pragma: no cover
