"""Keyword routing for plain chat messages.

Patterns are case-insensitive and checked in priority order; the first
match wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

ROUTE_MENU = "menu"
ROUTE_DAILY = "daily"
ROUTE_PLAY = "play"
ROUTE_GUESS = "guess"
ROUTE_LEADERBOARD = "leaderboard"

_ROUTES: list[tuple[str, re.Pattern[str]]] = [
    (ROUTE_MENU, re.compile(r"\b(start|menu)\b", re.IGNORECASE)),
    (ROUTE_DAILY, re.compile(r"daily\s*reward", re.IGNORECASE)),
    (ROUTE_PLAY, re.compile(r"play\s*game", re.IGNORECASE)),
    (ROUTE_GUESS, re.compile(r"guess\s+(\d+)", re.IGNORECASE)),
    (ROUTE_LEADERBOARD, re.compile(r"\bleaderboard\b", re.IGNORECASE)),
]

# Looks like a command but didn't route (e.g. "/help", "guess five")
_COMMANDISH = re.compile(r"daily\s*reward|play\s*game|guess|start|menu|leaderboard", re.IGNORECASE)

SHORT_MESSAGE_LEN = 10

_MENTION = re.compile(r"<@!?\d+>")


@dataclass(frozen=True)
class Route:
    name: str
    number: Optional[int] = None


def strip_mentions(text: str) -> str:
    """Remove user mentions like <@123> or <@!123> and surrounding whitespace."""
    return _MENTION.sub(" ", text or "").strip()


def route(text: str) -> Optional[Route]:
    """Map message text to a Route, or None when no keyword matches."""
    text = (text or "").strip()
    if not text:
        return None
    for name, pattern in _ROUTES:
        m = pattern.search(text)
        if m is None:
            continue
        if name == ROUTE_GUESS:
            return Route(name, int(m.group(1)))
        return Route(name)
    return None


def fallback_reply(text: str) -> str:
    """Reply for messages that no route handled."""
    text = (text or "").strip()
    if text.startswith("/") or _COMMANDISH.search(text):
        return "I don't recognize that command. Type **menu** to see what I can do!"
    if len(text) < SHORT_MESSAGE_LEN:
        return "Thanks for reaching out! To get started and see all my features, just type **menu**."
    return f"🤖 Echo: {text}"
