"""Record store for UserRecord rows.

Every mutation that has to be race-free goes through `atomic_update`, which
holds a row lock for the whole read-modify-write.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional, TypeVar

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from utils.db import get_engine, get_sessionmaker
from utils.errors import StoreUnavailable, UserNotFound
from utils.models import UserRecord

logger = logging.getLogger("bot.user_store")

T = TypeVar("T")


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _clean_name(value: Optional[str], *, limit: int = 100) -> str:
    return (value or "").strip()[:limit]


async def find_user(user_id: int) -> Optional[UserRecord]:
    """Return the record for `user_id`, or None if the user never registered."""
    Session = get_sessionmaker()
    try:
        async with Session() as session:
            return await session.get(UserRecord, int(user_id))
    except (SQLAlchemyError, OSError) as e:
        raise StoreUnavailable(f"find_user failed for {user_id}") from e


def _dialect_insert():
    """Pick the dialect-specific insert() so ON CONFLICT is available."""
    name = str(getattr(get_engine().dialect, "name", "") or "").lower()
    if "sqlite" in name:
        return sqlite_insert
    return pg_insert


async def get_or_create_user(
    user_id: int,
    *,
    display_name: Optional[str] = None,
    handle: Optional[str] = None,
) -> tuple[UserRecord, bool]:
    """Lookup-or-create. Returns (record, created).

    The insert is ON CONFLICT DO NOTHING, so concurrent first contacts from
    the same user both end up with the one row. Presentation fields and
    `last_interaction` are refreshed on every call.
    """
    Session = get_sessionmaker()
    now = _now_utc()
    try:
        async with Session() as session:
            insert = _dialect_insert()
            stmt = insert(UserRecord).values(
                user_id=int(user_id),
                display_name=_clean_name(display_name),
                handle=_clean_name(handle) or None,
                total_score=0,
                game_score=0,
                current_streak=0,
                longest_streak=0,
                last_activity_date=None,
                daily_reward_last_claimed=None,
                pending_guess=None,
                last_interaction=now,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_nothing(index_elements=["user_id"])
            res = await session.execute(stmt)
            created = bool(res.rowcount)

            row = (
                await session.execute(
                    select(UserRecord).where(UserRecord.user_id == int(user_id)).with_for_update().limit(1)
                )
            ).scalar_one()
            if not created:
                touch_user(row, display_name=display_name, handle=handle, now=now)
                row.updated_at = now
            await session.commit()
    except (SQLAlchemyError, OSError) as e:
        raise StoreUnavailable(f"get_or_create_user failed for {user_id}") from e

    if created:
        logger.info("New user registered: %s (%s)", row.display_name, user_id)
    return row, created


def touch_user(
    row: UserRecord,
    *,
    display_name: Optional[str] = None,
    handle: Optional[str] = None,
    now: Optional[datetime] = None,
) -> None:
    """Refresh presentation fields from the latest observed interaction.

    An empty display name keeps the stored one; handle=None means "not seen".
    """
    if display_name:
        row.display_name = _clean_name(display_name)
    if handle is not None:
        row.handle = _clean_name(handle) or None
    row.last_interaction = now or _now_utc()


async def atomic_update(user_id: int, mutator: Callable[[UserRecord], T]) -> tuple[UserRecord, T]:
    """Apply `mutator` to the locked row and commit in one transaction.

    Raises UserNotFound when no record exists (never creates one) and
    StoreUnavailable when the store fails; in both cases nothing is written.
    """
    Session = get_sessionmaker()
    try:
        async with Session() as session:
            res = await session.execute(
                select(UserRecord).where(UserRecord.user_id == int(user_id)).with_for_update().limit(1)
            )
            row = res.scalar_one_or_none()
            if row is None:
                raise UserNotFound(user_id)

            out = mutator(row)
            row.updated_at = _now_utc()
            await session.commit()
            return row, out
    except (SQLAlchemyError, OSError) as e:
        raise StoreUnavailable(f"atomic_update failed for {user_id}") from e


async def reset_user(user_id: int) -> bool:
    """Administrative reset: zero scores and streaks, clear dates and the game round.

    Returns True if a matching record existed. The record itself is kept.
    """
    Session = get_sessionmaker()
    try:
        async with Session() as session:
            res = await session.execute(
                update(UserRecord)
                .where(UserRecord.user_id == int(user_id))
                .values(
                    total_score=0,
                    game_score=0,
                    current_streak=0,
                    longest_streak=0,
                    last_activity_date=None,
                    daily_reward_last_claimed=None,
                    pending_guess=None,
                    updated_at=_now_utc(),
                )
            )
            await session.commit()
    except (SQLAlchemyError, OSError) as e:
        raise StoreUnavailable(f"reset_user failed for {user_id}") from e

    matched = bool(res.rowcount)
    logger.info("User reset: user_id=%s matched=%s", user_id, matched)
    return matched
