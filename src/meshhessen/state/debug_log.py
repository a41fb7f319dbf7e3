"""Bounded in-memory log backing the Debug tab."""

from __future__ import annotations

import logging
from collections import deque
from datetime import UTC, datetime

MAX_DEBUG_LINES = 10_000

# ``extra`` for log calls whose text is already written to a DebugLog directly
MIRRORED = {"debug_log_mirrored": True}


class DebugLog:
    """FIFO ring of diagnostic lines; the oldest line is dropped past capacity."""

    def __init__(self, capacity: int = MAX_DEBUG_LINES) -> None:
        self._lines: deque[str] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._lines.maxlen or 0

    def append(self, line: str) -> None:
        self._lines.append(line)

    def log(self, message: str) -> None:
        """Append *message* with an ISO-8601 timestamp prefix."""
        ts = datetime.now(UTC).isoformat(timespec="seconds")
        self._lines.append(f"[{ts}] {message}")

    def lines(self, limit: int | None = None) -> list[str]:
        if limit is None:
            return list(self._lines)
        if limit <= 0:
            return []
        return list(self._lines)[-limit:]

    def clear(self) -> None:
        self._lines.clear()

    def __len__(self) -> int:
        return len(self._lines)


class DebugLogHandler(logging.Handler):
    """Mirrors log records into a :class:`DebugLog`."""

    def __init__(self, debug_log: DebugLog, level: int = logging.DEBUG) -> None:
        super().__init__(level=level)
        self._debug_log = debug_log
        self.setFormatter(logging.Formatter("[%(asctime)s] [%(name)s] %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        if getattr(record, "debug_log_mirrored", False):
            return
        try:
            self._debug_log.append(self.format(record))
        except Exception:  # noqa: BLE001
            self.handleError(record)
