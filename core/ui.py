from __future__ import annotations

import logging
from typing import Optional

import discord

logger = logging.getLogger("bot.ui")

# Discord rejects messages over 2000 characters.
MAX_MESSAGE_LEN = 1900


def _clip(content: str) -> str:
    return content if len(content) <= MAX_MESSAGE_LEN else content[: MAX_MESSAGE_LEN - 1] + "…"


async def safe_send(interaction: discord.Interaction, content: str, *, ephemeral: bool = False) -> None:
    """Safely send a message (ephemeral optional).

    Uses followups if the initial interaction response has already been used.
    Never raises.
    """
    try:
        if interaction.response.is_done():
            await interaction.followup.send(_clip(content), ephemeral=ephemeral)
        else:
            await interaction.response.send_message(_clip(content), ephemeral=ephemeral)
    except discord.HTTPException:
        logger.exception("Failed sending interaction response")


async def safe_ephemeral_send(interaction: discord.Interaction, content: str) -> None:
    await safe_send(interaction, content, ephemeral=True)


async def safe_defer(interaction: discord.Interaction, *, ephemeral: bool = True) -> None:
    """Safely defer an interaction response."""
    try:
        if not interaction.response.is_done():
            await interaction.response.defer(ephemeral=ephemeral)
    except discord.HTTPException:
        logger.exception("Failed deferring interaction")


async def safe_reply(message: discord.Message, content: str) -> None:
    """Reply to a plain chat message without pinging the author. Never raises."""
    try:
        await message.reply(_clip(content), mention_author=False)
    except discord.HTTPException:
        logger.exception("Failed replying to message %s", getattr(message, "id", "?"))


def format_retry_after(seconds: Optional[int]) -> str:
    if not seconds or seconds <= 0:
        return ""
    seconds = int(seconds)
    if seconds < 60:
        return f" Try again in {seconds}s."
    minutes, sec = divmod(seconds, 60)
    if minutes < 60:
        return f" Try again in {minutes}m {sec}s."
    hours, minutes = divmod(minutes, 60)
    return f" Try again in {hours}h {minutes}m."
