"""Chat actions shared by keyword messages and slash commands.

Each action returns the reply text. UserNotFound and StoreUnavailable are
turned into guidance replies here; nothing else is caught.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import config
from core.ui import format_retry_after
from utils import leaderboard as lb
from utils.audit import audit_log
from utils.errors import StoreUnavailable, UserNotFound
from utils.models import UserRecord
from utils.streak import (
    StreakResult,
    apply_to_record,
    as_utc,
    is_same_utc_day,
    seconds_until_next_utc_day,
)
from utils.user_store import atomic_update, get_or_create_user, reset_user as _store_reset_user, touch_user

logger = logging.getLogger("bot.actions")

MSG_REGISTER_FIRST = "Please type **menu** first to register!"
MSG_STORE_DOWN = "I'm having trouble right now. Please try again later."
MSG_NO_ROUND = "Please start a new game first by typing **play game**."


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def dashboard_message(display_name: str, score: int, streak: int) -> str:
    return (
        f"👋 *Welcome, {display_name}!*\n\n"
        "🤖 *Here's what I can do:*\n\n"
        "📊 *YOUR STATUS*\n"
        f"   💰 Score: {score}\n"
        f"   🔥 Streak: {streak} day(s)\n\n"
        "📅 *DAILY FEATURE*\n"
        f"   Claim daily rewards once per day to earn {config.DAILY_REWARD_POINTS} points.\n"
        "   Type: **daily reward**\n\n"
        "🎲 *GUESSING GAME*\n"
        f"   Guess my secret number ({config.GUESS_MIN}-{config.GUESS_MAX}).\n"
        "   Start New Game: **play game**\n"
        "   Make a Guess: **guess 5** (or any number)\n\n"
        "🏆 *LEADERBOARD*\n"
        "   Type: **leaderboard**\n\n"
        "⚙️ *OTHER*\n"
        "   See this dashboard: **menu** or **/menu**\n\n"
        "_Note: Commands are not case-sensitive._"
    )


async def menu(user_id: int, display_name: str, handle: Optional[str] = None) -> str:
    """Register (lookup-or-create) the user and show the dashboard."""
    try:
        rec, _ = await get_or_create_user(user_id, display_name=display_name, handle=handle)
    except StoreUnavailable:
        logger.exception("menu failed (user_id=%s)", user_id)
        return "I'm having trouble initializing right now. Please try again later."
    return dashboard_message(rec.display_name or display_name, int(rec.total_score or 0), int(rec.current_streak or 0))


async def daily_reward(
    user_id: int,
    *,
    now: Optional[datetime] = None,
    display_name: Optional[str] = None,
    handle: Optional[str] = None,
) -> str:
    """Claim the daily reward once per UTC day; the claim is a streak-eligible action."""
    when = as_utc(now or _now_utc())
    award = int(config.DAILY_REWARD_POINTS)

    def _claim(rec: UserRecord) -> Optional[StreakResult]:
        touch_user(rec, display_name=display_name, handle=handle, now=when)
        if is_same_utc_day(as_utc(rec.daily_reward_last_claimed), when):
            return None
        rec.daily_reward_last_claimed = when
        return apply_to_record(rec, now=when, award=award)

    try:
        _, result = await atomic_update(user_id, _claim)
    except UserNotFound:
        return MSG_REGISTER_FIRST
    except StoreUnavailable:
        logger.exception("daily reward failed (user_id=%s)", user_id)
        return MSG_STORE_DOWN

    if result is None:
        wait = format_retry_after(seconds_until_next_utc_day(when))
        return f"⏳ You've already claimed your reward today.{wait}"

    return (
        f"💰 *Daily Reward Claimed!* You earned {result.score_added} points. "
        f"Your total score is now: {result.total_score}\n{result.message}"
    )


async def play_game(
    user_id: int,
    *,
    rng: random.Random | None = None,
    display_name: Optional[str] = None,
    handle: Optional[str] = None,
) -> str:
    """Start (or restart) a guessing round with a fresh secret number."""
    secret = (rng or random).randint(config.GUESS_MIN, config.GUESS_MAX)

    def _start(rec: UserRecord) -> None:
        touch_user(rec, display_name=display_name, handle=handle)
        rec.pending_guess = secret

    try:
        await atomic_update(user_id, _start)
    except UserNotFound:
        return MSG_REGISTER_FIRST
    except StoreUnavailable:
        logger.exception("play game failed (user_id=%s)", user_id)
        return MSG_STORE_DOWN

    return (
        "🎲 *NEW GAME STARTED!* I'm thinking of a number between "
        f"{config.GUESS_MIN} and {config.GUESS_MAX}. "
        "Send your guess by typing 'guess [number]' (e.g., guess 5)"
    )


@dataclass(frozen=True)
class _GuessOutcome:
    kind: str  # no_round | invalid | correct | low | high
    secret: Optional[int] = None
    streak: Optional[StreakResult] = None


async def guess(
    user_id: int,
    number: int,
    *,
    now: Optional[datetime] = None,
    display_name: Optional[str] = None,
    handle: Optional[str] = None,
) -> str:
    """Check a guess against the active round; a correct guess is streak-eligible."""
    when = as_utc(now or _now_utc())
    award = int(config.GUESS_REWARD_POINTS)
    number = int(number)

    def _check(rec: UserRecord) -> _GuessOutcome:
        touch_user(rec, display_name=display_name, handle=handle, now=when)
        secret = rec.pending_guess
        if secret is None:
            return _GuessOutcome("no_round")
        if number < config.GUESS_MIN or number > config.GUESS_MAX:
            return _GuessOutcome("invalid")
        if number == secret:
            rec.pending_guess = None
            return _GuessOutcome("correct", secret, apply_to_record(rec, now=when, award=award))
        return _GuessOutcome("low" if number < secret else "high", secret)

    try:
        _, outcome = await atomic_update(user_id, _check)
    except UserNotFound:
        return MSG_REGISTER_FIRST
    except StoreUnavailable:
        logger.exception("guess failed (user_id=%s)", user_id)
        return MSG_STORE_DOWN

    if outcome.kind == "no_round":
        return MSG_NO_ROUND
    if outcome.kind == "invalid":
        return (
            "That's not a valid number! Please guess a number between "
            f"{config.GUESS_MIN} and {config.GUESS_MAX}."
        )
    if outcome.kind == "low":
        return "❌ Too low! Try a higher number."
    if outcome.kind == "high":
        return "❌ Too high! Try a lower number."

    res = outcome.streak
    return (
        f"🎉 *CORRECT!* The number was {outcome.secret}. You earned {res.score_added} points! "
        f"Total score: {res.total_score}\n{res.message}"
    )


async def leaderboard(limit: Optional[int] = None) -> str:
    return lb.render(await lb.top_n(limit or config.LEADERBOARD_LIMIT))


async def reset_user(user_id: int, *, actor_id: Optional[int] = None) -> str:
    """Administrative reset. Callers are responsible for authorization."""
    try:
        matched = await _store_reset_user(user_id)
    except StoreUnavailable:
        logger.exception("reset failed (user_id=%s)", user_id)
        audit_log("USER_RESET", user_id=user_id, actor_id=actor_id, result="error", reason="store_unavailable")
        return MSG_STORE_DOWN

    audit_log("USER_RESET", user_id=user_id, actor_id=actor_id, result="ok" if matched else "not_found")
    if not matched:
        return f"❌ No user record found for `{user_id}`."
    return f"✅ Reset scores and streaks for `{user_id}`."
