"""DB-backed tests for apply_daily_action and the user store."""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from utils.errors import StoreUnavailable, UserNotFound
from utils.streak import apply_daily_action, as_utc

UTC = timezone.utc
NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)
YESTERDAY = NOW - timedelta(days=1)


class TestApplyDailyAction:

    async def test_unknown_user_raises_and_creates_nothing(self, db_engine, load_user):
        with pytest.raises(UserNotFound) as exc:
            await apply_daily_action(4242, 10, now=NOW)
        assert exc.value.user_id == 4242
        assert await load_user(4242) is None

    async def test_first_action_persists(self, seed_user, load_user):
        await seed_user(1)
        res = await apply_daily_action(1, 10, now=NOW)
        assert res.success is True
        assert res.new_streak == 1
        assert res.is_new_day is True

        rec = await load_user(1)
        assert rec.current_streak == 1
        assert rec.longest_streak == 1
        assert rec.total_score == 10
        assert rec.game_score == 10
        assert as_utc(rec.last_activity_date) == NOW

    async def test_continue_then_same_day(self, seed_user, load_user):
        await seed_user(2, total_score=40, game_score=40, current_streak=3, longest_streak=5,
                        last_activity_date=YESTERDAY)

        first = await apply_daily_action(2, 10, now=NOW)
        assert (first.new_streak, first.total_score, first.longest_streak, first.is_new_day) == (4, 50, 5, True)

        second = await apply_daily_action(2, 10, now=NOW + timedelta(hours=3))
        assert (second.new_streak, second.total_score, second.is_new_day) == (4, 60, False)

        rec = await load_user(2)
        assert rec.total_score == 60
        assert rec.game_score == 50
        assert rec.current_streak == 4
        assert as_utc(rec.last_activity_date) == NOW

    async def test_gap_resets_but_keeps_longest(self, seed_user, load_user):
        await seed_user(3, total_score=70, game_score=70, current_streak=6, longest_streak=6,
                        last_activity_date=NOW - timedelta(days=3))
        res = await apply_daily_action(3, 5, now=NOW)
        assert res.new_streak == 1
        rec = await load_user(3)
        assert rec.current_streak == 1
        assert rec.longest_streak == 6
        assert rec.total_score == 75

    async def test_consecutive_days_accumulate(self, seed_user, load_user):
        await seed_user(4)
        for day in range(5):
            await apply_daily_action(4, 1, now=NOW + timedelta(days=day))
        rec = await load_user(4)
        assert rec.current_streak == 5
        assert rec.longest_streak == 5
        assert rec.total_score == 5

    async def test_failed_commit_leaves_record_unchanged(self, seed_user, load_user, monkeypatch):
        await seed_user(5, total_score=40, current_streak=3, longest_streak=5, last_activity_date=YESTERDAY)

        async def _fail(self):
            raise OperationalError("COMMIT", {}, ConnectionResetError("lost"))

        with monkeypatch.context() as m:
            m.setattr(AsyncSession, "commit", _fail)
            with pytest.raises(StoreUnavailable):
                await apply_daily_action(5, 10, now=NOW)

        rec = await load_user(5)
        assert rec.total_score == 40
        assert rec.current_streak == 3
        assert as_utc(rec.last_activity_date) == YESTERDAY

    async def test_unreachable_store(self, broken_store):
        with pytest.raises(StoreUnavailable):
            await apply_daily_action(6, 10, now=NOW)


class TestUserStore:

    async def test_get_or_create_is_idempotent(self, db_engine):
        from utils.user_store import get_or_create_user

        rec, created = await get_or_create_user(10, display_name="Ann", handle="ann")
        assert created is True
        assert rec.total_score == 0
        assert rec.current_streak == 0
        assert rec.last_activity_date is None

        again, created = await get_or_create_user(10, display_name="Annie", handle="annie")
        assert created is False
        assert again.user_id == 10
        assert again.display_name == "Annie"
        assert again.handle == "annie"

    async def test_find_user(self, seed_user):
        from utils.user_store import find_user

        await seed_user(11)
        assert (await find_user(11)).user_id == 11
        assert await find_user(12) is None

    async def test_reset_user(self, seed_user, load_user):
        from utils.user_store import reset_user

        await seed_user(13, total_score=99, game_score=80, current_streak=4, longest_streak=9,
                        last_activity_date=NOW, daily_reward_last_claimed=NOW, pending_guess=3)
        assert await reset_user(13) is True

        rec = await load_user(13)
        assert rec is not None
        assert (rec.total_score, rec.game_score, rec.current_streak, rec.longest_streak) == (0, 0, 0, 0)
        assert rec.last_activity_date is None
        assert rec.daily_reward_last_claimed is None
        assert rec.pending_guess is None
        assert rec.display_name == "user13"

    async def test_reset_unknown_user(self, db_engine):
        from utils.user_store import reset_user

        assert await reset_user(999) is False

    async def test_get_or_create_keeps_counters(self, seed_user):
        from utils.user_store import get_or_create_user

        await seed_user(14, total_score=30, current_streak=2, longest_streak=4)
        rec, created = await get_or_create_user(14, display_name="Newname")
        assert created is False
        assert (rec.total_score, rec.current_streak, rec.longest_streak) == (30, 2, 4)
        assert rec.display_name == "Newname"


# ---------------------------------------------------------------------------
# Same-user double-taps (separate connections, real lock contention)
# ---------------------------------------------------------------------------

class TestConcurrentSameUser:

    async def test_concurrent_first_contact_creates_one_row(self, file_db_engine):
        from utils.user_store import find_user, get_or_create_user

        results = await asyncio.gather(
            get_or_create_user(20, display_name="a"),
            get_or_create_user(20, display_name="b"),
        )
        assert sorted(created for _, created in results) == [False, True]
        assert {rec.user_id for rec, _ in results} == {20}
        assert (await find_user(20)).total_score == 0

    async def test_double_tap_menu_registers_once(self, file_db_engine):
        from utils import actions
        from utils.user_store import find_user

        replies = await asyncio.gather(
            actions.menu(21, "Ann", "ann"),
            actions.menu(21, "Ann", "ann"),
        )
        assert all("Welcome, Ann" in r for r in replies)
        assert (await find_user(21)).handle == "ann"

    async def test_concurrent_actions_lose_no_increment(self, file_db_engine):
        from utils.user_store import find_user, get_or_create_user

        await get_or_create_user(22, display_name="c")
        results = await asyncio.gather(
            *(apply_daily_action(22, 10, now=NOW + timedelta(minutes=i)) for i in range(5))
        )

        rec = await find_user(22)
        assert rec.total_score == 50
        # Exactly one of the five opened the day; the rest were same-day repeats
        assert sum(r.is_new_day for r in results) == 1
        assert rec.game_score == 10
        assert (rec.current_streak, rec.longest_streak) == (1, 1)

    async def test_concurrent_actions_across_day_boundary(self, file_db_engine):
        from utils.user_store import atomic_update, find_user, get_or_create_user

        await get_or_create_user(23, display_name="d")

        def _yesterday(rec):
            rec.current_streak = 2
            rec.longest_streak = 2
            rec.last_activity_date = YESTERDAY

        await atomic_update(23, _yesterday)
        await asyncio.gather(apply_daily_action(23, 5, now=NOW), apply_daily_action(23, 5, now=NOW))

        rec = await find_user(23)
        assert rec.current_streak == 3
        assert rec.total_score == 10
