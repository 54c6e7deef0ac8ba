"""Tests for the admin audit trail (utils/audit.py)."""
from __future__ import annotations

import json

from utils import audit


def test_event_is_one_json_line(tmp_path):
    audit.audit_log("USER_RESET", user_id=7, actor_id=1, result="ok", log_dir=tmp_path)
    audit.audit_log("USER_RESET", user_id=8, command="tools/reset_user", log_dir=tmp_path)

    lines = (tmp_path / audit.AUDIT_FILENAME).read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    first, second = (json.loads(line) for line in lines)
    assert first["event"] == "USER_RESET"
    assert (first["user_id"], first["actor_id"], first["result"]) == (7, 1, "ok")
    assert "ts" in first
    # Unset fields are left out
    assert "actor_id" not in second
    assert second["command"] == "tools/reset_user"


def test_rotates_by_size(tmp_path, monkeypatch):
    monkeypatch.setattr(audit, "AUDIT_MAX_BYTES", 300)
    for i in range(20):
        audit.audit_log("USER_RESET", user_id=i, result="ok", log_dir=tmp_path)

    assert (tmp_path / f"{audit.AUDIT_FILENAME}.1").exists()
    assert (tmp_path / audit.AUDIT_FILENAME).stat().st_size <= 300


def test_write_failure_does_not_raise(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    audit.audit_log("USER_RESET", user_id=1, log_dir=blocker)
