"""
audit/recorder.py -- Append-only audit log writer.

Line format (one event per line):
    <ISO-8601 UTC timestamp> - <action> by <actor>
    <ISO-8601 UTC timestamp> - <action> by <actor> on file <filename>

Concurrency: route handlers run on Starlette's thread pool, so several
requests can record at once. A lock serializes the open/write/close cycle and
each line goes out in a single write() call, so lines never interleave.

Failure policy: audit fails open. An OSError while writing is logged at ERROR
and swallowed -- the triggering operation still gets its response. No
rotation and no size bound; the file grows until an operator rotates it.

Usage:
    recorder = AuditRecorder(Path("audit/record.txt"))
    recorder.record(AuditAction.UPLOAD, "1700000000000-report.pdf", "alice")
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

logger = logging.getLogger("filevault.audit")


class AuditAction(str, Enum):
    LOGIN = "login"
    FAILED_LOGIN = "failed-login"
    UPLOAD = "upload"
    DOWNLOAD = "download"
    VIEW = "view"
    DELETE = "delete"


def _one_line(value: str) -> str:
    # Actor and filename can be attacker-chosen (failed-login uses the
    # attempted username). Escape line breaks so one event stays one line.
    return value.replace("\\", "\\\\").replace("\r", "\\r").replace("\n", "\\n")


def format_entry(action: AuditAction, filename: str | None, actor: str, timestamp: datetime) -> str:
    """Render one audit line, including the trailing newline."""
    stamp = timestamp.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    line = f"{stamp} - {action.value} by {_one_line(actor)}"
    if filename is not None:
        line += f" on file {_one_line(filename)}"
    return line + "\n"


class AuditRecorder:
    """Single owned writer for the process-wide audit log."""

    def __init__(self, log_path: Path) -> None:
        self.log_path = Path(log_path)
        self._lock = threading.Lock()

    def record(self, action: AuditAction, filename: str | None, actor: str) -> bool:
        """Append one entry. Returns False if the write failed (already logged)."""
        entry = format_entry(action, filename, actor, datetime.now(timezone.utc))
        with self._lock:
            try:
                self.log_path.parent.mkdir(parents=True, exist_ok=True)
                with self.log_path.open("a", encoding="utf-8") as fh:
                    fh.write(entry)
            except OSError:
                logger.exception("Audit write failed: action=%s actor=%r file=%r", action.value, actor, filename)
                return False
        return True

    def read_entries(self) -> list[str]:
        """Return all recorded lines without trailing newlines. Empty if no log yet."""
        try:
            return self.log_path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            return []
