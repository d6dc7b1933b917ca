"""In-memory ring buffer of recent log lines for the dashboard log view."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class BufferedRecord:
    timestamp: str
    level: str
    logger: str
    message: str


class RingBufferHandler(logging.Handler):
    """Logging handler keeping the last *capacity* formatted records."""

    def __init__(self, capacity: int = 500) -> None:
        super().__init__()
        self._buffer: deque[BufferedRecord] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = BufferedRecord(
                timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                level=record.levelname,
                logger=record.name,
                message=self.format(record),
            )
        except Exception:
            self.handleError(record)
            return
        with self._lock:
            self._buffer.append(entry)

    def get_records(self, limit: int = 200, level: str | None = None) -> list[dict]:
        """Return up to *limit* records, newest first, optionally filtered by level."""
        with self._lock:
            records = list(self._buffer)
        if level:
            wanted = level.upper()
            records = [r for r in records if r.level == wanted]
        records.reverse()
        return [asdict(r) for r in records[:limit]]

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()


log_buffer = RingBufferHandler(capacity=1000)
log_buffer.setFormatter(logging.Formatter("%(message)s"))
