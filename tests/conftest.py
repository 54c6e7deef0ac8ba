"""Pytest configuration and fixtures. Run against in-memory SQLite by default."""
from __future__ import annotations

import os
import sys
from contextlib import asynccontextmanager

import pytest

# Ensure project root is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Avoid loading .env that might point at prod
os.environ.setdefault("ENVIRONMENT", "dev")


@pytest.fixture(autouse=True)
def _audit_to_tmp(monkeypatch, tmp_path):
    """Keep audit JSONL out of the project logs/ dir."""
    from utils import audit
    monkeypatch.setattr(audit, "_default_log_dir", lambda: tmp_path / "logs")


@pytest.fixture
async def db_engine():
    """In-memory async SQLite engine with all tables, wired into utils.db."""
    from sqlalchemy.ext.asyncio import create_async_engine
    from sqlalchemy.pool import StaticPool

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool)
    async with _wired(engine):
        yield engine


@pytest.fixture
async def file_db_engine(tmp_path):
    """File-backed SQLite engine with a real connection pool.

    Unlike the in-memory fixture, concurrent sessions get separate
    connections, so same-user races actually contend for the lock.
    """
    from sqlalchemy.ext.asyncio import create_async_engine

    from utils.db import use_immediate_transactions

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'streakbot.db'}", echo=False)
    use_immediate_transactions(engine)
    async with _wired(engine):
        yield engine


@asynccontextmanager
async def _wired(engine):
    """Create the schema and point utils.db at `engine` for the duration."""
    from sqlalchemy.ext.asyncio import async_sessionmaker

    import utils.db as db_mod
    from utils.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    prev = (db_mod._engine, db_mod._sessionmaker)
    db_mod._engine = engine
    db_mod._sessionmaker = async_sessionmaker(engine, expire_on_commit=False)
    try:
        yield engine
    finally:
        db_mod._engine, db_mod._sessionmaker = prev
        await engine.dispose()


@pytest.fixture
def seed_user(db_engine):
    """Insert a UserRecord with the given fields and return its id."""
    from sqlalchemy.ext.asyncio import AsyncSession
    from utils.models import UserRecord

    async def _seed(user_id: int, **fields) -> int:
        defaults = dict(
            display_name=f"user{user_id}",
            total_score=0,
            game_score=0,
            current_streak=0,
            longest_streak=0,
        )
        defaults.update(fields)
        async with AsyncSession(db_engine, expire_on_commit=False) as s:
            s.add(UserRecord(user_id=user_id, **defaults))
            await s.commit()
        return user_id

    return _seed


@pytest.fixture
def load_user(db_engine):
    """Read a UserRecord back through a fresh session."""
    from sqlalchemy.ext.asyncio import AsyncSession
    from utils.models import UserRecord

    async def _load(user_id: int):
        async with AsyncSession(db_engine, expire_on_commit=False) as s:
            return await s.get(UserRecord, user_id)

    return _load


class BrokenSessionmaker:
    """Sessionmaker stand-in whose sessions fail on entry, like an unreachable DB."""

    def __call__(self):
        return self

    async def __aenter__(self):
        from sqlalchemy.exc import OperationalError
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("db down"))

    async def __aexit__(self, *exc):
        return False


@pytest.fixture
def broken_store(monkeypatch):
    """Make every store call fail with a connection error."""
    import utils.leaderboard
    import utils.user_store

    broken = BrokenSessionmaker()
    monkeypatch.setattr(utils.user_store, "get_sessionmaker", lambda: broken)
    monkeypatch.setattr(utils.leaderboard, "get_sessionmaker", lambda: broken)
    return broken
