"""Tests for the audit logger."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path

from paynotify.audit.logger import AuditLogger, build_audit_logger, validate_audit_chain
from paynotify.config import Settings
from paynotify.models import AuditEventType
from tests.conftest import make_audit_event


def test_log_appends_json_line(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    AuditLogger(log_path=str(log_file)).log(make_audit_event())

    lines = log_file.read_text().strip().split("\n")
    assert len(lines) == 1
    parsed = json.loads(lines[0])
    assert parsed["event_type"] == "webhook_rejected"
    assert parsed["risk_level"] == "high"
    assert parsed["prev_hash"] is None
    assert "timestamp" in parsed


def test_log_creates_parent_directory(tmp_path: Path) -> None:
    log_file = tmp_path / "subdir" / "audit.jsonl"
    AuditLogger(log_path=str(log_file)).log(make_audit_event())
    assert log_file.exists()


def test_entries_are_hash_chained(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    logger = AuditLogger(log_path=str(log_file))
    logger.log(make_audit_event(event_type=AuditEventType.WEBHOOK_ACCEPTED))
    logger.log(make_audit_event(event_type=AuditEventType.NOTIFICATION_PROCESSED))

    first, second = log_file.read_text().strip().split("\n")
    assert json.loads(second)["prev_hash"] == hashlib.sha256(first.encode()).hexdigest()
    assert validate_audit_chain(log_file).valid is True


def test_chain_continues_across_instances(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    AuditLogger(log_path=str(log_file)).log(make_audit_event(action="first"))
    AuditLogger(log_path=str(log_file)).log(make_audit_event(action="second"))

    assert validate_audit_chain(log_file).valid is True


def test_tampered_entry_breaks_chain(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    logger = AuditLogger(log_path=str(log_file))
    for i in range(3):
        logger.log(make_audit_event(action=f"action_{i}"))

    lines = log_file.read_text().strip().split("\n")
    lines[1] = lines[1].replace("action_1", "action_X")
    log_file.write_text("\n".join(lines) + "\n")

    result = validate_audit_chain(log_file)
    assert result.valid is False
    assert result.broken_at_line == 3


def test_empty_log_is_valid(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    log_file.write_text("")
    assert validate_audit_chain(log_file).valid is True


def test_first_line_with_prev_hash_and_no_backup_is_broken(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    log_file.write_text(json.dumps({"action": "orphan", "prev_hash": "0" * 64}) + "\n")

    result = validate_audit_chain(log_file)
    assert result.valid is False
    assert result.broken_at_line == 1


def test_interleaved_writers_share_one_chain(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    server = AuditLogger(log_path=str(log_file))
    cli = AuditLogger(log_path=str(log_file))
    for i in range(3):
        server.log(make_audit_event(action=f"server-{i}"))
        cli.log(make_audit_event(action=f"cli-{i}"))

    assert len(log_file.read_text().strip().split("\n")) == 6
    assert validate_audit_chain(log_file).valid is True


def test_lock_file_created_beside_log(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    AuditLogger(log_path=str(log_file)).log(make_audit_event())
    assert (tmp_path / ".audit.jsonl.lock").exists()


# --- Rotation ---


def test_rotation_triggers_at_threshold(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    logger = AuditLogger(log_path=str(log_file), max_bytes=100, backup_count=3)
    for i in range(20):
        logger.log(make_audit_event(action=f"event-{i}"))
    assert (tmp_path / "audit.jsonl.1").exists()


def test_rotation_deletes_oldest(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    logger = AuditLogger(log_path=str(log_file), max_bytes=50, backup_count=2)
    for i in range(50):
        logger.log(make_audit_event(action=f"event-{i}"))
    assert (tmp_path / "audit.jsonl.2").exists()
    assert not (tmp_path / "audit.jsonl.3").exists()


def test_chain_continues_across_rotation(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    logger = AuditLogger(log_path=str(log_file), max_bytes=50, backup_count=2)
    for i in range(10):
        logger.log(make_audit_event(action=f"event-{i}"))

    backup = tmp_path / "audit.jsonl.1"
    last_rotated = backup.read_text().strip().split("\n")[-1]
    first_current = json.loads(log_file.read_text().split("\n")[0])
    assert first_current["prev_hash"] == hashlib.sha256(last_rotated.encode()).hexdigest()
    for path in (log_file, backup, tmp_path / "audit.jsonl.2"):
        assert validate_audit_chain(path).valid is True


def test_tampered_backup_breaks_current_file(tmp_path: Path) -> None:
    log_file = tmp_path / "audit.jsonl"
    logger = AuditLogger(log_path=str(log_file), max_bytes=50, backup_count=2)
    for i in range(4):
        logger.log(make_audit_event(action=f"event-{i}"))

    backup = tmp_path / "audit.jsonl.1"
    backup.write_text(backup.read_text().replace("event-", "EVENT-"))

    result = validate_audit_chain(log_file)
    assert result.valid is False
    assert result.broken_at_line == 1


def test_build_audit_logger_uses_settings(tmp_path: Path) -> None:
    settings = Settings(
        audit_log_path=str(tmp_path / "audit.jsonl"),
        audit_log_max_bytes=500,
        audit_log_backup_count=7,
    )
    logger = build_audit_logger(settings)
    assert logger is not None
    assert logger._max_bytes == 500
    assert logger._backup_count == 7


def test_build_audit_logger_without_path_is_none() -> None:
    assert build_audit_logger(Settings()) is None
