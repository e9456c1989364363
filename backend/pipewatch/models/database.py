"""
Async SQLAlchemy engine & session factory for the PostGIS survey store.

Tables are created on startup by ``init_models()`` (``CREATE TABLE IF NOT
EXISTS`` through ``run_sync``), so an already-provisioned database is left
untouched.

Sessions handed out by ``get_db`` never commit on their own: routers call
``await session.commit()`` at the end of a successful unit of work.  Any
exception rolls the session back before it propagates, and the session is
always closed.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from pipewatch.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=10,
    max_overflow=5,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency — yields an uncommitted async session."""
    session = async_session_factory()
    try:
        yield session
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Database error: %s", exc, exc_info=True)
        raise
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def init_models() -> None:
    """
    Create every table registered on ``Base.metadata``.

    Model modules must be imported first so the metadata is populated;
    ``pipewatch.models`` does that on import.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
