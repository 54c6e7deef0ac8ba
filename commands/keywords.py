# commands/keywords.py
from __future__ import annotations

import logging

import discord
from discord.ext import commands

from core.router import (
    ROUTE_DAILY,
    ROUTE_GUESS,
    ROUTE_LEADERBOARD,
    ROUTE_MENU,
    ROUTE_PLAY,
    Route,
    fallback_reply,
    route,
    strip_mentions,
)
from core.ui import safe_reply
from utils import actions

logger = logging.getLogger("bot.keywords")


async def dispatch(r: Route, *, user_id: int, display_name: str, handle: str | None) -> str:
    """Run the action for a matched route and return the reply text."""
    if r.name == ROUTE_MENU:
        return await actions.menu(user_id, display_name, handle)
    if r.name == ROUTE_DAILY:
        return await actions.daily_reward(user_id, display_name=display_name, handle=handle)
    if r.name == ROUTE_PLAY:
        return await actions.play_game(user_id, display_name=display_name, handle=handle)
    if r.name == ROUTE_GUESS:
        return await actions.guess(user_id, int(r.number or 0), display_name=display_name, handle=handle)
    if r.name == ROUTE_LEADERBOARD:
        return await actions.leaderboard()
    raise ValueError(f"unknown route {r.name!r}")


class KeywordCommands(commands.Cog):
    """Plain-message keyword commands (menu, daily reward, play game, guess N, leaderboard)."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        if message.author.bot or not message.content:
            return

        # In guilds only messages that mention the bot are commands.
        if message.guild is not None and self.bot.user not in message.mentions:
            return

        text = strip_mentions(message.content)
        r = route(text)
        if r is None:
            await safe_reply(message, fallback_reply(text))
            return

        author = message.author
        try:
            reply = await dispatch(
                r,
                user_id=int(author.id),
                display_name=author.display_name,
                handle=author.name,
            )
        except Exception:
            logger.exception("keyword command failed (route=%s user_id=%s)", r.name, author.id)
            reply = "⚠️ Something went wrong. Please try again!"
        await safe_reply(message, reply)


async def setup(bot: commands.Bot):
    if bot.get_cog("KeywordCommands") is None:
        await bot.add_cog(KeywordCommands(bot))
