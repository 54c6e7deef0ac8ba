# utils/errors.py
from __future__ import annotations


class StreakBotError(RuntimeError):
    """Base class for errors raised by the game core."""


class UserNotFound(StreakBotError):
    """A streak update was attempted for a user that never registered.

    Not retriable: the user has to go through the menu/start path first.
    """

    def __init__(self, user_id: int):
        super().__init__(f"User not found: {user_id}")
        self.user_id = int(user_id)


class StoreUnavailable(StreakBotError):
    """The record store could not be reached or the transaction failed."""
