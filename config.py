import logging
import os
import sys

_config_log = logging.getLogger("config")


def _as_bool(name: str, default: str = "false") -> bool:
    return str(os.getenv(name, default)).strip().lower() in {"1", "true", "yes", "y", "on"}


def _as_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        _config_log.warning("CONFIG WARNING: %s=%r is not an integer; using %d", name, raw, default)
        return default


# ---- Discord ----
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN") or os.getenv("TOKEN")

# ---- Environment ----
ENVIRONMENT = os.getenv("ENVIRONMENT", "prod").strip().lower()
BOT_NAME = os.getenv("BOT_NAME", "StreakBot")

# ---- Game economy ----
# Points awarded by each streak-eligible action.
DAILY_REWARD_POINTS = _as_int("DAILY_REWARD_POINTS", 10)
GUESS_REWARD_POINTS = _as_int("GUESS_REWARD_POINTS", 5)

# Guessing game range (inclusive)
GUESS_MIN = 1
GUESS_MAX = 10

# ---- Leaderboard ----
LEADERBOARD_LIMIT = _as_int("LEADERBOARD_LIMIT", 10)


# ---- Guild sync ----
def _parse_id_list(raw: str | None) -> list[int]:
    if not raw:
        return []
    out: list[int] = []
    seen: set[int] = set()
    for part in str(raw).split(","):
        p = part.strip()
        if not p.isdigit():
            continue
        v = int(p)
        # stable de-dupe
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out


SYNC_GUILD_IDS = _parse_id_list(os.getenv("SYNC_GUILD_ID"))

# ---- Owners ----
# Only these ids may run the administrative reset.
BOT_OWNER_IDS = set(_parse_id_list(os.getenv("BOT_OWNER_IDS")))

# ---- Keyword commands ----
# Plain-message keyword routing needs the privileged message content intent.
KEYWORD_COMMANDS_ENABLED = _as_bool("KEYWORD_COMMANDS_ENABLED", "true")


# ---------------------------------------------------------------------------
# Startup validation
# ---------------------------------------------------------------------------

def validate_config() -> None:
    """Check for required and recommended environment variables.

    Called at import time. In production, missing critical vars cause a hard
    exit so the problem is obvious.
    """
    is_prod = ENVIRONMENT != "dev"
    errors: list[str] = []
    warnings: list[str] = []

    if not DISCORD_TOKEN:
        errors.append("DISCORD_TOKEN (or TOKEN) is not set. The bot cannot start.")

    if is_prod and not os.getenv("DATABASE_URL"):
        errors.append("DATABASE_URL is not set. Postgres is required in production.")

    if not BOT_OWNER_IDS:
        warnings.append(
            "BOT_OWNER_IDS is not set. /z_owner reset_user will be inaccessible. "
            "Set to a comma-separated list of Discord user IDs."
        )
    if DAILY_REWARD_POINTS < 0 or GUESS_REWARD_POINTS < 0:
        errors.append("DAILY_REWARD_POINTS and GUESS_REWARD_POINTS must be >= 0.")

    for w in warnings:
        _config_log.warning("CONFIG WARNING: %s", w)

    if errors:
        for e in errors:
            _config_log.critical("CONFIG ERROR: %s", e)
        if is_prod:
            sys.exit(1)


validate_config()
