# bot.py
import asyncio
import logging
import signal
from logging.handlers import RotatingFileHandler
from pathlib import Path

import discord
from discord.ext import commands
from dotenv import load_dotenv
from pythonjsonlogger.json import JsonFormatter

# ---------------------------------------------------------------------------
# Environment (before config reads it)
# ---------------------------------------------------------------------------

load_dotenv()

import config  # noqa: E402
from utils.db import dispose_engine, init_db  # noqa: E402

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

LOG_DIR = Path(__file__).parent / "logs"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

root_logger = logging.getLogger()
root_logger.setLevel(logging.INFO)


def _make_json_formatter() -> logging.Formatter:
    """JSON formatter for structured file logs."""
    return JsonFormatter(
        "{asctime}{levelname}{name}{message}",
        style="{",
        rename_fields={"asctime": "timestamp", "levelname": "level"},
    )


def setup_logging() -> None:
    """Configure logging once (safe for reloads)."""
    for handler in root_logger.handlers:
        if getattr(handler, "_streakbot_handler", False):
            return

    LOG_DIR.mkdir(exist_ok=True)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    console._streakbot_handler = True  # type: ignore[attr-defined]
    root_logger.addHandler(console)

    json_fmt = _make_json_formatter()

    file = RotatingFileHandler(
        LOG_DIR / "bot.log",
        maxBytes=5_000_000,
        backupCount=5,
        encoding="utf-8",
    )
    file.setFormatter(json_fmt)
    file._streakbot_handler = True  # type: ignore[attr-defined]
    root_logger.addHandler(file)

    errors = RotatingFileHandler(
        LOG_DIR / "errors.log",
        maxBytes=2_000_000,
        backupCount=3,
        encoding="utf-8",
    )
    errors.setLevel(logging.ERROR)
    errors.setFormatter(json_fmt)
    errors._streakbot_handler = True  # type: ignore[attr-defined]
    root_logger.addHandler(errors)


setup_logging()
logger = logging.getLogger("bot")

# ---------------------------------------------------------------------------
# Intents
# ---------------------------------------------------------------------------

intents = discord.Intents.default()
# Keyword commands read plain message text (privileged intent; enable it in
# the developer portal too).
intents.message_content = bool(config.KEYWORD_COMMANDS_ENABLED)

# ---------------------------------------------------------------------------
# Extensions
# ---------------------------------------------------------------------------

EXTENSIONS = [
    "commands.slash.game",
    "commands.slash.owner",
]
if config.KEYWORD_COMMANDS_ENABLED:
    EXTENSIONS.append("commands.keywords")


# ---------------------------------------------------------------------------
# Bot
# ---------------------------------------------------------------------------


class StreakBot(commands.Bot):
    async def setup_hook(self) -> None:
        # Durable data lives in the DB; nothing works without it.
        await init_db()
        await load_extensions(self)
        try:
            await sync_commands(self)
        except discord.HTTPException:
            logger.exception("sync_commands() failed")

    async def on_ready(self):
        logger.info("%s is ready. Logged in as %s", config.BOT_NAME, self.user)


async def load_extensions(bot: commands.Bot) -> None:
    """Load all extensions. Log failures but keep going so one broken cog
    doesn't take the rest of the bot down."""
    failed: list[str] = []
    for ext in EXTENSIONS:
        try:
            await bot.load_extension(ext)
            logger.info("Loaded extension: %s", ext)
        except commands.ExtensionError:
            logger.exception("FAILED loading extension: %s", ext)
            failed.append(ext)
    if failed:
        logger.error("Extensions that failed to load: %s", failed)


async def sync_commands(bot: commands.Bot) -> None:
    """Dev: copy globals to the configured guilds for instant sync. Prod: global sync."""
    if config.ENVIRONMENT == "dev" and config.SYNC_GUILD_IDS:
        for guild_id in config.SYNC_GUILD_IDS:
            guild = discord.Object(id=int(guild_id))
            bot.tree.copy_global_to(guild=guild)
            await bot.tree.sync(guild=guild)
            logger.info("✅ Synced slash commands to guild=%s", guild_id)
        return
    await bot.tree.sync()
    logger.info("✅ Synced slash commands globally")


bot = StreakBot(command_prefix=commands.when_mentioned, intents=intents)


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------

async def main():
    try:
        await bot.start(config.DISCORD_TOKEN)
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Received shutdown signal")
    finally:
        if not bot.is_closed():
            logger.info("Closing bot connection...")
            await bot.close()
        await dispose_engine()
        logger.info("Shutdown complete")


if __name__ == "__main__":
    def _handle_signal(sig, _frame):
        logger.info("Signal %s received, initiating graceful shutdown...", signal.Signals(sig).name)
        raise KeyboardInterrupt

    signal.signal(signal.SIGINT, _handle_signal)
    try:
        signal.signal(signal.SIGTERM, _handle_signal)
    except (OSError, AttributeError):
        pass  # SIGTERM not available on Windows

    asyncio.run(main())
