"""Owner-only helper to reset a user's scores and streaks.

Usage:
  python tools/reset_user.py <USER_ID>

Zeroes total/game score and both streak counters, clears the activity and
daily-claim dates. The user record itself is kept.
"""

import asyncio
import sys
from pathlib import Path

# --- Ensure project root is on sys.path ---
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


async def main():
    if len(sys.argv) != 2 or not sys.argv[1].isdigit():
        print("Usage: python tools/reset_user.py <USER_ID>")
        return 2
    user_id = int(sys.argv[1])

    from dotenv import load_dotenv
    load_dotenv()

    from utils.audit import audit_log
    from utils.db import dispose_engine
    from utils.user_store import reset_user

    try:
        matched = await reset_user(user_id)
    finally:
        await dispose_engine()

    audit_log("USER_RESET", user_id=user_id, command="tools/reset_user", result="ok" if matched else "not_found")

    if not matched:
        print(f"No user record for {user_id}")
        return 1
    print(f"OK: user {user_id} reset")
    return 0

if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
