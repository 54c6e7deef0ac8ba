from __future__ import annotations

import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

import config
from core.ui import safe_defer, safe_send
from utils import actions

logger = logging.getLogger("slash.game")


class SlashGame(commands.Cog):
    """Slash-command equivalents of the keyword commands."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name="menu", description="Register and show your dashboard")
    async def menu(self, interaction: discord.Interaction):
        await safe_defer(interaction, ephemeral=True)
        u = interaction.user
        try:
            msg = await actions.menu(int(u.id), u.display_name, u.name)
        except Exception:
            logger.exception("/menu failed")
            msg = "⚠️ Something went wrong. Please try again!"
        await safe_send(interaction, msg, ephemeral=True)

    @app_commands.command(name="daily", description="Claim your daily reward and keep your streak alive")
    async def daily(self, interaction: discord.Interaction):
        await safe_defer(interaction, ephemeral=True)
        try:
            u = interaction.user
            msg = await actions.daily_reward(int(u.id), display_name=u.display_name, handle=u.name)
        except Exception:
            logger.exception("/daily failed")
            msg = "⚠️ Something went wrong. Please try again!"
        await safe_send(interaction, msg, ephemeral=True)

    @app_commands.command(name="play", description="Start a new number-guessing game")
    async def play(self, interaction: discord.Interaction):
        await safe_defer(interaction, ephemeral=True)
        try:
            u = interaction.user
            msg = await actions.play_game(int(u.id), display_name=u.display_name, handle=u.name)
        except Exception:
            logger.exception("/play failed")
            msg = "⚠️ Something went wrong. Please try again!"
        await safe_send(interaction, msg, ephemeral=True)

    @app_commands.command(name="guess", description="Guess the secret number")
    @app_commands.describe(number=f"Your guess ({config.GUESS_MIN}-{config.GUESS_MAX})")
    async def guess(self, interaction: discord.Interaction, number: int):
        await safe_defer(interaction, ephemeral=True)
        try:
            u = interaction.user
            msg = await actions.guess(int(u.id), number, display_name=u.display_name, handle=u.name)
        except Exception:
            logger.exception("/guess failed")
            msg = "⚠️ Something went wrong. Please try again!"
        await safe_send(interaction, msg, ephemeral=True)

    @app_commands.command(name="leaderboard", description="Show the global leaderboard")
    @app_commands.describe(limit="How many users to show (default 10)")
    async def leaderboard(self, interaction: discord.Interaction, limit: Optional[app_commands.Range[int, 1, 25]] = None):
        await safe_defer(interaction, ephemeral=False)
        msg = await actions.leaderboard(limit)
        await safe_send(interaction, msg)


async def setup(bot: commands.Bot):
    if bot.get_cog("SlashGame") is None:
        await bot.add_cog(SlashGame(bot))
