"""NDJSON event log under ``<directory>/logs/events.ndjson``.

One JSON object per line, keys sorted.  Appends take an exclusive
``fcntl.flock`` and reads a shared one, so concurrent CLI runs against
the same project never interleave partial lines.  Without ``fcntl``
(Windows) locking is skipped.
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from gridcalc.logging.events import GridcalcEvent

try:
    import fcntl

    _HAS_FCNTL = True
except ImportError:
    _HAS_FCNTL = False

LOG_FILENAME = "events.ndjson"

_DEFAULT_TAIL_BYTES = 2 * 1024 * 1024
_MAX_READ_LIMIT = 2000


@contextmanager
def _flocked(fd: int, exclusive: bool) -> Iterator[None]:
    if not _HAS_FCNTL:
        yield
        return
    fcntl.flock(fd, fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
    try:
        yield
    finally:
        fcntl.flock(fd, fcntl.LOCK_UN)


class EventSink:
    """Append-only event log for one project directory."""

    def __init__(self, directory: Path, *, fsync: bool = False, tail_bytes: int | None = None) -> None:
        self.logs_dir = Path(directory) / "logs"
        self._fsync = fsync
        self._tail_bytes = _DEFAULT_TAIL_BYTES if tail_bytes is None else tail_bytes
        self.logs_dir.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self.logs_dir / LOG_FILENAME

    def write(self, event: GridcalcEvent) -> None:
        """Append *event* as a single line."""
        record = json.dumps(event.model_dump(mode="json"), sort_keys=True, default=str)
        data = (record + "\n").encode("utf-8")
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o644)
        try:
            with _flocked(fd, exclusive=True):
                os.write(fd, data)
                if self._fsync:
                    os.fsync(fd)
        finally:
            os.close(fd)

    def read_events(
        self,
        *,
        level: str | None = None,
        event_type: str | None = None,
        limit: int = 200,
    ) -> list[dict[str, Any]]:
        """Most recent events first, optionally filtered by level and type.

        Only the last ``tail_bytes`` of the file are scanned; *limit* is
        capped at 2000.
        """
        matched = [
            record
            for record in self._records()
            if (level is None or record.get("level") == level)
            and (event_type is None or record.get("event_type") == event_type)
        ]
        matched.reverse()
        return matched[: min(limit, _MAX_READ_LIMIT)]

    # ------------------------------------------------------------------

    def _records(self) -> Iterator[dict[str, Any]]:
        """Parsed records from the log tail, oldest first; bad lines are skipped."""
        if not self.path.exists():
            return
        for line in self._tail().splitlines():
            if not line.strip():
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(record, dict):
                yield record

    def _tail(self) -> str:
        with open(self.path, "rb") as f:
            with _flocked(f.fileno(), exclusive=False):
                size = os.fstat(f.fileno()).st_size
                start = max(0, size - self._tail_bytes)
                f.seek(start)
                data = f.read()
        if start:
            # First line is probably cut mid-record.
            cut = data.find(b"\n")
            data = data[cut + 1:] if cut >= 0 else b""
        return data.decode("utf-8", errors="replace")
