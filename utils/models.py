from __future__ import annotations

"""
SQLAlchemy models.

One row per chat user. Scores, streak state, the daily-reward cooldown and
the guessing-game round all live on the same record so that every
streak-eligible action is a single-row transaction.
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class UserRecord(Base):
    """Per-user gamification state."""

    __tablename__ = "users"

    # Chat user id (Discord snowflake). Immutable after creation.
    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)

    # Presentation only; refreshed on each observed interaction
    display_name: Mapped[str] = mapped_column(String(100), default="")
    handle: Mapped[str | None] = mapped_column(String(100), nullable=True)

    total_score: Mapped[int] = mapped_column(Integer, default=0)
    game_score: Mapped[int] = mapped_column(Integer, default=0)

    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0)

    # Last streak-eligible action; NULL means the user never acted
    last_activity_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Daily-reward cooldown marker
    daily_reward_last_claimed: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Secret number of an in-progress guessing round (NULL = no round)
    pending_guess: Mapped[int | None] = mapped_column(Integer, nullable=True)

    last_interaction: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now_utc)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now_utc)

    __table_args__ = (
        Index("ix_users_leaderboard", "total_score", "longest_streak", "current_streak"),
    )

    @property
    def leaderboard_name(self) -> str:
        """`@handle` when known, else the display name."""
        if self.handle:
            return f"@{self.handle}"
        return self.display_name or str(self.user_id)

    def __repr__(self) -> str:
        return (
            f"UserRecord(user_id={self.user_id!r}, total_score={self.total_score!r}, "
            f"current_streak={self.current_streak!r}, longest_streak={self.longest_streak!r})"
        )
