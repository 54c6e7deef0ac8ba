"""Global leaderboard.

Ranking: total score, then longest streak, then current streak (all
descending). Equal keys keep whatever order the store returns.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from sqlalchemy import select

from utils.db import get_sessionmaker
from utils.models import UserRecord

log = logging.getLogger("bot.leaderboard")

DEFAULT_LIMIT = 10

EMPTY_MESSAGE = "The leaderboard is empty! Be the first to get a score! 🏅"
HEADER_LINES = [
    "🏆 *Global Leaderboard (Top 10)* 🏆",
    "",
    "`Rank | Username        | Total | Streak`",
    "-" * 40,
]
FOOTER_LINES = [
    "",
    "*Total* = Total Score | *Streak* = Longest Streak",
]

NAME_WIDTH = 15
_MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}


def _rank_marker(rank: int) -> str:
    """Medal for the top 3, `N.` afterwards (rank is 1-based)."""
    return _MEDALS.get(rank, f"{rank}.")


def format_row(rank: int, rec: UserRecord) -> str:
    name = rec.leaderboard_name[:NAME_WIDTH]
    score = str(int(rec.total_score or 0))
    streak = str(int(rec.longest_streak or 0))
    return f"{_rank_marker(rank):<4}| {name:<{NAME_WIDTH}} | {score:<5} | {streak:<6}"


async def top_n(n: int = DEFAULT_LIMIT) -> List[UserRecord]:
    """Top `n` users by (total_score, longest_streak, current_streak), descending.

    Read-only. Store failures are logged and degrade to an empty list so the
    leaderboard never breaks the caller.
    """
    limit = int(n)
    if limit <= 0:
        return []

    try:
        Session = get_sessionmaker()
        async with Session() as session:
            res = await session.execute(
                select(UserRecord)
                .order_by(
                    UserRecord.total_score.desc(),
                    UserRecord.longest_streak.desc(),
                    UserRecord.current_streak.desc(),
                )
                .limit(limit)
            )
            return list(res.scalars().all())
    except Exception:
        log.exception("Failed to fetch leaderboard (limit=%s)", limit)
        return []


def render(records: Sequence[UserRecord]) -> str:
    """Render records as the fixed-width leaderboard message."""
    if not records:
        return EMPTY_MESSAGE

    lines = list(HEADER_LINES)
    for idx, rec in enumerate(records):
        lines.append(format_row(idx + 1, rec))
    lines.extend(FOOTER_LINES)
    return "\n".join(lines)
