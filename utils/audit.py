# utils/audit.py
"""Append-only JSONL trail for administrative actions (score resets).

One JSON object per line in logs/audit.log, rotated by size like the
application logs. Writing an audit line never raises into the caller.
"""
from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger("bot.audit")

AUDIT_FILENAME = "audit.log"
AUDIT_MAX_BYTES = 2_000_000
AUDIT_BACKUPS = 5

_handlers: dict[Path, RotatingFileHandler] = {}
_handlers_lock = threading.Lock()


def _default_log_dir() -> Path:
    return Path(__file__).resolve().parent.parent / "logs"


def _handler_for(log_dir: Path) -> RotatingFileHandler:
    key = log_dir.resolve()
    with _handlers_lock:
        handler = _handlers.get(key)
        if handler is None:
            key.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                key / AUDIT_FILENAME,
                maxBytes=AUDIT_MAX_BYTES,
                backupCount=AUDIT_BACKUPS,
                encoding="utf-8",
            )
            handler.setFormatter(logging.Formatter("%(message)s"))
            _handlers[key] = handler
        return handler


def build_event(event: str, **fields: Any) -> dict[str, Any]:
    """Timestamped payload; None-valued fields are dropped."""
    payload: dict[str, Any] = {"ts": datetime.now(timezone.utc).isoformat(), "event": str(event)}
    payload.update({k: v for k, v in fields.items() if v is not None})
    return payload


def audit_log(
    event: str,
    *,
    user_id: Optional[int] = None,
    actor_id: Optional[int] = None,
    command: Optional[str] = None,
    result: Optional[str] = None,
    reason: Optional[str] = None,
    log_dir: Optional[Path] = None,
) -> None:
    """Record one admin event, e.g. USER_RESET with its target and actor."""
    try:
        payload = build_event(
            event,
            user_id=int(user_id) if user_id is not None else None,
            actor_id=int(actor_id) if actor_id is not None else None,
            command=command,
            result=result,
            reason=reason,
        )
        line = json.dumps(payload, ensure_ascii=False, default=str)
        record = logging.makeLogRecord({"name": logger.name, "levelno": logging.INFO, "levelname": "INFO", "msg": line})
        _handler_for(log_dir or _default_log_dir()).handle(record)
    except Exception:
        logger.exception("Failed to write audit event=%s", event)
