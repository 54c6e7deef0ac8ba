"""Daily streak and score engine.

A streak counts consecutive UTC calendar days with at least one
streak-eligible action (daily-reward claim, correct guess). Continuity is
decided by calendar boundaries, not elapsed time: acting at 23:59 UTC and
again at 00:01 UTC is two days, while 00:01 and 23:00 the same UTC day is one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Optional

from utils.models import UserRecord
from utils.user_store import atomic_update

log = logging.getLogger("bot.streak")

OUTCOME_FIRST = "first"
OUTCOME_CONTINUED = "continued"
OUTCOME_BROKEN = "broken"
OUTCOME_SAME_DAY = "same_day"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Normalize to an aware UTC datetime. Naive values (SQLite) are taken as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def start_of_utc_day(now: datetime) -> datetime:
    now = as_utc(now)
    return datetime(now.year, now.month, now.day, tzinfo=timezone.utc)


def seconds_until_next_utc_day(now: Optional[datetime] = None) -> int:
    now = as_utc(now or _now_utc())
    next_midnight = start_of_utc_day(now) + timedelta(days=1)
    return max(0, int((next_midnight - now).total_seconds()))


def is_same_utc_day(a: Optional[datetime], b: datetime) -> bool:
    if a is None:
        return False
    return start_of_utc_day(a) == start_of_utc_day(b)


@dataclass(frozen=True)
class StreakState:
    current_streak: int = 0
    longest_streak: int = 0
    total_score: int = 0
    game_score: int = 0
    last_activity_date: Optional[datetime] = None

    @classmethod
    def from_record(cls, rec: UserRecord) -> "StreakState":
        return cls(
            current_streak=int(rec.current_streak or 0),
            longest_streak=int(rec.longest_streak or 0),
            total_score=int(rec.total_score or 0),
            game_score=int(rec.game_score or 0),
            last_activity_date=as_utc(rec.last_activity_date),
        )

    def apply_to(self, rec: UserRecord) -> None:
        rec.current_streak = self.current_streak
        rec.longest_streak = self.longest_streak
        rec.total_score = self.total_score
        rec.game_score = self.game_score
        rec.last_activity_date = self.last_activity_date


@dataclass(frozen=True)
class StreakResult:
    success: bool
    new_streak: int
    is_new_day: bool
    score_added: int
    message: str
    outcome: str
    total_score: int = 0
    longest_streak: int = 0


def compute_streak(state: StreakState, *, now: datetime, award: int) -> tuple[StreakState, StreakResult]:
    """Pure streak transition: (state, now, award) -> (next state, result)."""
    award = int(award)
    if award < 0:
        raise ValueError("score award must be >= 0")

    now = as_utc(now)
    today = start_of_utc_day(now)
    yesterday = today - timedelta(days=1)
    last = as_utc(state.last_activity_date)

    if last is not None and last >= today:
        # Score accrual is not streak-gated; the streak and date stay put.
        nxt = replace(state, total_score=state.total_score + award)
        return nxt, StreakResult(
            success=True,
            new_streak=nxt.current_streak,
            is_new_day=False,
            score_added=award,
            message=f"Already completed today. Streak remains {nxt.current_streak}.",
            outcome=OUTCOME_SAME_DAY,
            total_score=nxt.total_score,
            longest_streak=nxt.longest_streak,
        )

    if last is None:
        streak = 1
        outcome = OUTCOME_FIRST
        message = "First action ever! Streak started at 1."
    elif last >= yesterday:
        streak = state.current_streak + 1
        outcome = OUTCOME_CONTINUED
        message = f"🔥 *Streak continued!* Your streak is now {streak} days! (Total Score: +{award})"
    else:
        streak = 1
        outcome = OUTCOME_BROKEN
        message = (
            f"😭 *Streak broken!* Resetting to 1. Your longest was {state.longest_streak} days. "
            f"(Total Score: +{award})"
        )

    nxt = StreakState(
        current_streak=streak,
        longest_streak=max(state.longest_streak, streak),
        total_score=state.total_score + award,
        game_score=state.game_score + award,
        last_activity_date=now,
    )
    return nxt, StreakResult(
        success=True,
        new_streak=streak,
        is_new_day=True,
        score_added=award,
        message=message,
        outcome=outcome,
        total_score=nxt.total_score,
        longest_streak=nxt.longest_streak,
    )


def apply_to_record(rec: UserRecord, *, now: datetime, award: int) -> StreakResult:
    """Run `compute_streak` against a (locked) record and write the new state onto it."""
    nxt, result = compute_streak(StreakState.from_record(rec), now=now, award=award)
    nxt.apply_to(rec)
    return result


async def apply_daily_action(user_id: int, score_award: int, *, now: Optional[datetime] = None) -> StreakResult:
    """Update the user's streak and score for one streak-eligible action.

    Raises UserNotFound for unregistered users (no auto-registration) and
    StoreUnavailable if the store fails; the record is unchanged in both cases.
    """
    when = as_utc(now or _now_utc())
    _, result = await atomic_update(user_id, lambda rec: apply_to_record(rec, now=when, award=score_award))
    log.info(
        "Streak update user_id=%s outcome=%s streak=%d added=%d",
        user_id, result.outcome, result.new_streak, result.score_added,
    )
    return result
