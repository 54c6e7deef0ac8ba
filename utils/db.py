from __future__ import annotations

"""
Async SQLAlchemy DB layer.

Postgres (asyncpg) is the source of truth in production. In dev, a local
SQLite file (aiosqlite) is used when DATABASE_URL is unset.
"""

import asyncio
import logging
import os
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

log = logging.getLogger("db")

_engine: Any = None
_sessionmaker: Any = None


def get_database_url() -> str:
    """Public accessor for the database URL (used by Alembic and other tooling)."""
    return _database_url()


def _database_url() -> str:
    url = (os.getenv("DATABASE_URL", "") or "").strip()
    if url:
        # Convert sync postgres URLs to asyncpg URLs if needed
        if url.startswith("postgres://"):
            url = "postgresql+asyncpg://" + url[len("postgres://") :]
        elif url.startswith("postgresql://") and "+asyncpg" not in url:
            url = "postgresql+asyncpg://" + url[len("postgresql://") :]
        return url

    # A silent SQLite fallback in production means data loss across deploys.
    env = (os.getenv("ENVIRONMENT", "prod") or "prod").strip().lower()
    if env != "dev":
        raise RuntimeError(
            "DATABASE_URL is missing. Set DATABASE_URL (Postgres) in your environment. "
            "If you are running locally, set ENVIRONMENT=dev to allow a local SQLite fallback."
        )

    return "sqlite+aiosqlite:///./streakbot.db"


def get_engine():
    global _engine
    if _engine is None:
        url = _database_url()
        pool_kwargs: dict = {}
        if not url.startswith("sqlite"):
            pool_kwargs = {
                "pool_size": 10,
                "max_overflow": 20,
                "pool_timeout": 30,
                "pool_recycle": 1800,
                "pool_pre_ping": True,
            }
        _engine = create_async_engine(url, future=True, echo=False, **pool_kwargs)
        if url.startswith("sqlite"):
            use_immediate_transactions(_engine)
    return _engine


def use_immediate_transactions(engine) -> None:
    """Make every SQLite transaction start with BEGIN IMMEDIATE.

    pysqlite defers BEGIN until the first write, so two sessions can both
    read a row and then race to upgrade their locks (one fails with
    "database is locked"). Taking the write lock up front makes SQLite
    serialize read-modify-write transactions the way SELECT ... FOR UPDATE
    does on Postgres. Waiting sessions block on the driver's busy timeout.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def get_sessionmaker():
    global _sessionmaker
    if _sessionmaker is None:
        _sessionmaker = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _sessionmaker


_DB_RETRY_ATTEMPTS = 5
_DB_RETRY_BASE_DELAY = 2.0


async def init_db() -> None:
    """Initialize the async engine and make sure the schema is usable.

    In dev (or with DB_AUTO_CREATE=1) missing tables are created directly;
    otherwise the schema is expected to come from Alembic and we only run a
    preflight query.

    Retries with exponential backoff for transient connectivity failures
    (the DB often boots after the app on container platforms).
    """
    from utils.models import Base

    engine = get_engine()
    env = (os.getenv("ENVIRONMENT", "prod") or "prod").strip().lower()
    auto_create = str(os.getenv("DB_AUTO_CREATE", "")).strip().lower() in {"1", "true", "yes", "on"}

    for attempt in range(1, _DB_RETRY_ATTEMPTS + 1):
        try:
            await _init_db_inner(engine, Base, env, auto_create)
            return
        except Exception as exc:
            if attempt >= _DB_RETRY_ATTEMPTS:
                log.exception("DB init/preflight failed after %d attempts", _DB_RETRY_ATTEMPTS)
                raise
            delay = _DB_RETRY_BASE_DELAY * (2 ** (attempt - 1))
            log.warning(
                "DB init attempt %d/%d failed (%s); retrying in %.1fs…",
                attempt, _DB_RETRY_ATTEMPTS, exc, delay,
            )
            await asyncio.sleep(delay)


async def _init_db_inner(engine, Base, env: str, auto_create: bool) -> None:
    async with engine.begin() as conn:
        if env == "dev" or auto_create:
            await conn.run_sync(Base.metadata.create_all)
            log.info("DB init OK (tables ensured; env=%s auto_create=%s)", env, auto_create)
        else:
            await conn.execute(text("SELECT 1"))
            log.info("DB preflight OK (env=%s). Apply migrations via Alembic.", env)


async def dispose_engine() -> None:
    """Close pooled connections (called on shutdown)."""
    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessionmaker = None
