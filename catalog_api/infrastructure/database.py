"""Database configuration and session management.

Provides async SQLAlchemy engine and session factory. The engine is
created lazily so the in-memory backend never needs a database driver.
"""

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from catalog_api.infrastructure.config import settings

# Base class for models
Base = declarative_base()


def dump_json(value: object) -> str:
    # Keep non-ASCII text searchable in JSON columns.
    return json.dumps(value, ensure_ascii=False)


def json_text(value: str) -> str:
    """Render ``value`` the way it appears inside a string in ``dump_json`` output.

    Used to match JSON columns as text, e.g. ``12" frame`` becomes ``12\\" frame``.
    """
    return dump_json(value)[1:-1]


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Get or create the async engine."""
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            settings.database_url,
            echo=settings.debug,
            pool_pre_ping=True,
            json_serializer=dump_json,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Open a session that commits on success and rolls back on error.

    Yields:
        AsyncSession for database operations.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def dispose_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
