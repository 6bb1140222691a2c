"""Audit trail: append-only JSON Lines with rotation and a SHA-256 hash chain.

Each line carries ``prev_hash``, the digest of the line before it, so a
removed or edited entry breaks the chain. The chain continues across
rotation: the first line of a fresh file points at the last line of
``<name>.1``.
"""

from __future__ import annotations

import fcntl
import hashlib
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from paynotify.models import AuditEvent

if TYPE_CHECKING:
    from paynotify.config import Settings

_TAIL_BLOCK = 4096


@dataclass
class ChainValidationResult:
    valid: bool
    broken_at_line: int | None = None


def _digest(line: str) -> str:
    return hashlib.sha256(line.encode()).hexdigest()


def _read_last_line(path: Path) -> str | None:
    """Return the final non-empty line of *path* without reading it all."""
    if not path.exists():
        return None
    with open(path, "rb") as f:
        pos = f.seek(0, os.SEEK_END)
        tail = b""
        while pos > 0:
            step = min(_TAIL_BLOCK, pos)
            pos -= step
            f.seek(pos)
            tail = f.read(step) + tail
            stripped = tail.rstrip(b"\n")
            if b"\n" in stripped:
                return stripped.rsplit(b"\n", 1)[1].decode()
    return tail.rstrip(b"\n").decode() or None


def _is_backup(log_path: Path) -> bool:
    return log_path.name.rpartition(".")[2].isdigit()


def _predecessor(log_path: Path) -> Path:
    """``audit.jsonl`` -> ``audit.jsonl.1``; ``audit.jsonl.2`` -> ``audit.jsonl.3``."""
    if _is_backup(log_path):
        stem, _, suffix = log_path.name.rpartition(".")
        return log_path.with_name(f"{stem}.{int(suffix) + 1}")
    return log_path.with_name(f"{log_path.name}.1")


def validate_audit_chain(log_path: Path) -> ChainValidationResult:
    """Check that every entry references the hash of its predecessor.

    A first line with a ``prev_hash`` must match the last line of the
    previous rotated file. The oldest surviving backup has no predecessor
    and is taken as the start of the chain.
    """
    text = log_path.read_text().strip()
    if not text:
        return ChainValidationResult(valid=True)

    lines = text.split("\n")
    first_prev = json.loads(lines[0]).get("prev_hash")
    if first_prev is not None:
        previous = _read_last_line(_predecessor(log_path))
        if previous is None:
            if not _is_backup(log_path):
                return ChainValidationResult(valid=False, broken_at_line=1)
        elif first_prev != _digest(previous):
            return ChainValidationResult(valid=False, broken_at_line=1)

    for number in range(1, len(lines)):
        if json.loads(lines[number]).get("prev_hash") != _digest(lines[number - 1]):
            return ChainValidationResult(valid=False, broken_at_line=number + 1)
    return ChainValidationResult(valid=True)


class AuditLogger:
    """Writes webhook and notification decisions to a rotating audit file.

    Writers in separate processes (the server and the CLI) share the file
    through a lock file next to it.
    """

    def __init__(
        self,
        log_path: str,
        max_bytes: int = 10_485_760,
        backup_count: int = 5,
    ) -> None:
        self.log_path = Path(log_path)
        self._max_bytes = max_bytes
        self._backup_count = backup_count
        self._lock_path = self.log_path.parent / f".{self.log_path.name}.lock"

    def _backup(self, index: int) -> Path:
        return self.log_path.parent / f"{self.log_path.name}.{index}"

    def _maybe_rotate(self) -> None:
        """Rotate the log file once it reaches max_bytes."""
        if not self.log_path.exists():
            return
        if self.log_path.stat().st_size < self._max_bytes:
            return

        oldest = self._backup(self._backup_count)
        if oldest.exists():
            oldest.unlink()
        for i in range(self._backup_count - 1, 0, -1):
            if self._backup(i).exists():
                self._backup(i).rename(self._backup(i + 1))
        self.log_path.rename(self._backup(1))

    def log(self, event: AuditEvent) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        data = json.loads(event.model_dump_json())

        with open(self._lock_path, "w") as lf:
            fcntl.flock(lf, fcntl.LOCK_EX)
            try:
                # Read the tail under the lock so other writers' lines are chained
                last_line = _read_last_line(self.log_path)
                self._maybe_rotate()
                data["prev_hash"] = _digest(last_line) if last_line else None
                line = json.dumps(data, separators=(",", ":"))
                with open(self.log_path, "a") as f:
                    f.write(line + "\n")
            finally:
                fcntl.flock(lf, fcntl.LOCK_UN)


def build_audit_logger(settings: Settings) -> AuditLogger | None:
    """Audit logger for ``settings``, or None when no log path is configured."""
    if not settings.audit_log_path:
        return None
    return AuditLogger(
        log_path=settings.audit_log_path,
        max_bytes=settings.audit_log_max_bytes,
        backup_count=settings.audit_log_backup_count,
    )
