"""Audit trail for rating and recompute events.

Events are appended as JSON Lines. Each line carries ``prev_hash``, the
SHA-256 of the line before it, so edits to history are detectable with
validate_audit_chain(). Files rotate by size.
"""

from __future__ import annotations

import fcntl
import hashlib
import json
import logging
from dataclasses import dataclass
from pathlib import Path

from collabtrust.models import AuditEvent, AuditEventType

logger = logging.getLogger(__name__)


@dataclass
class ChainValidationResult:
    valid: bool
    broken_at_line: int | None = None


def _digest(line: str) -> str:
    return hashlib.sha256(line.encode()).hexdigest()


def validate_audit_chain(log_path: Path) -> ChainValidationResult:
    """Check that every line's prev_hash matches the line before it."""
    text = log_path.read_text().strip()
    if not text:
        return ChainValidationResult(valid=True)

    lines = text.split("\n")
    previous: str | None = None
    for number, line in enumerate(lines, start=1):
        expected = _digest(previous) if previous is not None else None
        if json.loads(line).get("prev_hash") != expected:
            return ChainValidationResult(valid=False, broken_at_line=number)
        previous = line
    return ChainValidationResult(valid=True)


def read_audit_events(log_path: Path) -> list[AuditEvent]:
    """Load the events of a single (unrotated) log file, oldest first."""
    if not log_path.exists():
        return []
    events = []
    for line in log_path.read_text().splitlines():
        if line.strip():
            data = json.loads(line)
            data.pop("prev_hash", None)
            events.append(AuditEvent.model_validate(data))
    return events


class AuditLogger:
    """Append-only, hash-chained audit log for the reputation pipeline."""

    def __init__(
        self,
        log_path: str,
        max_bytes: int = 10_485_760,
        backup_count: int = 5,
    ) -> None:
        self.log_path = Path(log_path)
        self._max_bytes = max_bytes
        self._backup_count = backup_count
        self._last_line: str | None = None
        # Continue the chain of an existing file
        if self.log_path.exists():
            existing = self.log_path.read_text().strip()
            if existing:
                self._last_line = existing.split("\n")[-1]

    def _backup(self, index: int) -> Path:
        return self.log_path.with_name(f"{self.log_path.name}.{index}")

    def _maybe_rotate(self) -> None:
        if not self.log_path.exists() or self.log_path.stat().st_size < self._max_bytes:
            return

        oldest = self._backup(self._backup_count)
        if oldest.exists():
            oldest.unlink()
        for i in range(self._backup_count - 1, 0, -1):
            if self._backup(i).exists():
                self._backup(i).rename(self._backup(i + 1))
        self.log_path.rename(self._backup(1))
        # Each file carries its own chain, starting from a null prev_hash
        self._last_line = None
        logger.info("Rotated audit log %s", self.log_path)

    def log(self, event: AuditEvent) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        record = json.loads(event.model_dump_json())

        lock_path = self.log_path.with_name(f".{self.log_path.name}.lock")
        with open(lock_path, "w") as lock:
            fcntl.flock(lock, fcntl.LOCK_EX)
            try:
                self._maybe_rotate()
                record["prev_hash"] = (
                    _digest(self._last_line) if self._last_line is not None else None
                )
                line = json.dumps(record, separators=(",", ":"))
                with open(self.log_path, "a") as f:
                    f.write(line + "\n")
            finally:
                fcntl.flock(lock, fcntl.LOCK_UN)

        self._last_line = line

    def record(
        self,
        event_type: AuditEventType,
        action: str,
        user_id: str | None = None,
        actor_id: str | None = None,
        result: str = "success",
        details: dict[str, object] | None = None,
    ) -> None:
        self.log(AuditEvent(
            event_type=event_type,
            action=action,
            user_id=user_id,
            actor_id=actor_id,
            result=result,
            details=details,
        ))
