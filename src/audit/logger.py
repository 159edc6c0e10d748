"""Audit trail for webhook, lookup, send and admin outcomes.

One JSON object per line in ``log_path``. When the file reaches
``max_bytes`` it becomes ``<name>.1`` and older backups move up by one;
anything past ``backup_count`` is deleted.
"""

from __future__ import annotations

import fcntl
import os
from collections.abc import Iterator
from pathlib import Path

from src.models import AuditEvent, AuditEventType

DEFAULT_MAX_BYTES = 10_485_760
DEFAULT_BACKUP_COUNT = 5


class AuditLogger:
    """Appends ``AuditEvent`` records and reads them back for inspection."""

    def __init__(
        self,
        log_path: str,
        max_bytes: int = DEFAULT_MAX_BYTES,
        backup_count: int = DEFAULT_BACKUP_COUNT,
    ) -> None:
        self.log_path = Path(log_path)
        self._max_bytes = max_bytes
        self._backup_count = backup_count

    @classmethod
    def from_env(cls, log_path: str) -> AuditLogger:
        return cls(
            log_path=log_path,
            max_bytes=int(os.environ.get("AUDIT_LOG_MAX_BYTES", DEFAULT_MAX_BYTES)),
            backup_count=int(os.environ.get("AUDIT_LOG_BACKUP_COUNT", DEFAULT_BACKUP_COUNT)),
        )

    @property
    def backups(self) -> list[Path]:
        """Backup paths, newest first."""
        return [
            self.log_path.with_name(f"{self.log_path.name}.{i}")
            for i in range(1, self._backup_count + 1)
        ]

    def log(self, event: AuditEvent) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        line = event.model_dump_json(exclude_none=True) + "\n"

        # Rotation and append share one lock across worker processes
        lock_path = self.log_path.with_name(f".{self.log_path.name}.lock")
        with open(lock_path, "w") as lock:
            fcntl.flock(lock, fcntl.LOCK_EX)
            try:
                if self._needs_rotation():
                    self._rotate()
                with open(self.log_path, "a", encoding="utf-8") as f:
                    f.write(line)
            finally:
                fcntl.flock(lock, fcntl.LOCK_UN)

    def _needs_rotation(self) -> bool:
        return self.log_path.exists() and self.log_path.stat().st_size >= self._max_bytes

    def _rotate(self) -> None:
        chain = [self.log_path, *self.backups]
        if chain[-1].exists():
            chain[-1].unlink()
        for newer, older in reversed(list(zip(chain, chain[1:]))):
            if newer.exists():
                newer.rename(older)

    def read_events(
        self,
        event_type: AuditEventType | None = None,
        sender_id: str | None = None,
        include_rotated: bool = False,
    ) -> list[AuditEvent]:
        """Return logged events oldest first, optionally filtered."""
        return [
            event for event in self._iter_events(include_rotated)
            if (event_type is None or event.event_type == event_type)
            and (sender_id is None or event.sender_id == sender_id)
        ]

    def _iter_events(self, include_rotated: bool) -> Iterator[AuditEvent]:
        files = [*reversed(self.backups), self.log_path] if include_rotated else [self.log_path]
        for path in files:
            if not path.exists():
                continue
            for line in path.read_text(encoding="utf-8").splitlines():
                if line.strip():
                    yield AuditEvent.model_validate_json(line)
