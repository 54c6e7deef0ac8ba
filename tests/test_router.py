"""Tests for keyword routing (no Discord connection)."""
from __future__ import annotations

import pytest

from core.router import (
    ROUTE_DAILY,
    ROUTE_GUESS,
    ROUTE_LEADERBOARD,
    ROUTE_MENU,
    ROUTE_PLAY,
    Route,
    fallback_reply,
    route,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("menu", Route(ROUTE_MENU)),
        ("/start", Route(ROUTE_MENU)),
        ("MENU please", Route(ROUTE_MENU)),
        ("daily reward", Route(ROUTE_DAILY)),
        ("DailyReward", Route(ROUTE_DAILY)),
        ("let's play game", Route(ROUTE_PLAY)),
        ("playgame", Route(ROUTE_PLAY)),
        ("guess 7", Route(ROUTE_GUESS, 7)),
        ("Guess   12", Route(ROUTE_GUESS, 12)),
        ("leaderboard", Route(ROUTE_LEADERBOARD)),
        ("show leaderboard", Route(ROUTE_LEADERBOARD)),
    ],
)
def test_route(text, expected):
    assert route(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "hello there", "menus", "stop", "guess five", "top"])
def test_no_route(text):
    assert route(text) is None


def test_menu_wins_over_later_patterns():
    assert route("start game") == Route(ROUTE_MENU)


def test_fallback_unknown_command():
    assert "don't recognize" in fallback_reply("/help")
    assert "don't recognize" in fallback_reply("guess five")


def test_fallback_short_greeting():
    assert "just type **menu**" in fallback_reply("hi")


def test_fallback_echo():
    assert fallback_reply("I really like this bot a lot") == "🤖 Echo: I really like this bot a lot"
