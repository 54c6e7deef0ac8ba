from __future__ import annotations

import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from core.ui import safe_ephemeral_send
from utils import actions
from utils.owner import AuthPredicate, is_bot_owner

logger = logging.getLogger("bot.owner")


class SlashOwner(commands.Cog):
    """Owner-only maintenance tools.

    Authorization is an injected predicate so deployments (and tests) decide
    who counts as an owner.
    """

    def __init__(self, bot: commands.Bot, *, is_authorized: AuthPredicate = is_bot_owner):
        self.bot = bot
        self.is_authorized = is_authorized

    # Grouped under a "z_" prefix so normal users don't stumble on them.
    owner = app_commands.Group(name="z_owner", description="Owner-only tools")

    @owner.command(name="reset_user", description="Reset a user's scores and streaks")
    @app_commands.describe(
        user="User to reset",
        user_id="Raw user id (if the user isn't visible here)",
    )
    async def reset_user(
        self,
        interaction: discord.Interaction,
        user: Optional[discord.User] = None,
        user_id: Optional[str] = None,
    ):
        if not self.is_authorized(interaction.user):
            await safe_ephemeral_send(interaction, "❌ Owner only.")
            return

        raw = str(user.id) if user is not None else (user_id or "").strip()
        if not raw.isdigit():
            await safe_ephemeral_send(interaction, "Pass a `user` or a numeric `user_id`.")
            return

        msg = await actions.reset_user(int(raw), actor_id=int(interaction.user.id))
        logger.info("Owner reset_user target=%s by=%s", raw, interaction.user.id)
        await safe_ephemeral_send(interaction, msg)


async def setup(bot: commands.Bot):
    if bot.get_cog("SlashOwner") is None:
        await bot.add_cog(SlashOwner(bot))
