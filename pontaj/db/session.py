"""
Async SQLAlchemy engine & session factory.

PostgreSQL (asyncpg) in production; SQLite (aiosqlite) works for local
development.  Pool sizing comes from ``settings.DB_*``.
"""

from __future__ import annotations

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pontaj.core.config import settings


def build_engine_args(database_url: str) -> dict:
    """Engine keyword arguments appropriate for the backend in *database_url*."""
    backend = make_url(database_url).get_backend_name()
    args: dict = {"echo": settings.DB_ECHO, "pool_pre_ping": True}
    if backend == "postgresql":
        args.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_recycle=settings.DB_POOL_RECYCLE,
        )
    elif backend == "sqlite":
        args["connect_args"] = {"check_same_thread": False}
    return args


engine = create_async_engine(settings.DATABASE_URL, **build_engine_args(settings.DATABASE_URL))

# Objects stay readable after commit; services return them straight to schemas
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
