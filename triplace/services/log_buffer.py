"""
triplace.services.log_buffer — In-Memory Log Tail for Admins
=============================================================

A thread-safe ring buffer attached to the root logger.  The admin API
reads the tail with ``get_logs()`` and changes the capture level with
``set_capture_level()`` without restarting the process.

Nothing is persisted; the buffer starts empty on every boot.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
DEFAULT_CAPACITY = 2000
VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Uvicorn disables propagation on these; captured records must reach root.
_SERVER_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")

_buffer: LogBuffer | None = None
_lock = threading.Lock()


@dataclass(frozen=True, slots=True)
class LogEntry:
    timestamp: str
    level: str
    logger: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class LogBuffer:
    """Bounded FIFO of :class:`LogEntry` guarded by a lock."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def get_entries(
        self,
        tail: int = 200,
        level: str | None = None,
        logger_prefix: str | None = None,
    ) -> list[dict[str, str]]:
        """Most recent *tail* entries at or above *level*, optionally by logger prefix."""
        min_level = logging.getLevelName(level.upper()) if level else 0
        if not isinstance(min_level, int):
            min_level = 0

        with self._lock:
            snapshot = list(self._entries)

        results = [
            e.to_dict() for e in snapshot
            if logging.getLevelName(e.level) >= min_level
            and (not logger_prefix or e.logger.startswith(logger_prefix))
        ]
        return results[-tail:] if tail else results

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)


class RingBufferHandler(logging.Handler):
    def __init__(self, buffer: LogBuffer, level: int = logging.DEBUG) -> None:
        super().__init__(level)
        self._buffer = buffer

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._buffer.append(LogEntry(
                timestamp=datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
                level=record.levelname,
                logger=record.name,
                message=self.format(record),
            ))
        except Exception:
            self.handleError(record)


# ---------------------------------------------------------------------------
# Process-global access
# ---------------------------------------------------------------------------
def get_buffer() -> LogBuffer:
    global _buffer
    if _buffer is None:
        with _lock:
            if _buffer is None:
                _buffer = LogBuffer()
    return _buffer


def _installed_handler() -> RingBufferHandler | None:
    for h in logging.getLogger().handlers:
        if isinstance(h, RingBufferHandler):
            return h
    return None


def install_handler(level: int = logging.DEBUG) -> RingBufferHandler:
    """Attach the ring-buffer handler to the root logger (once per process).

    Called from the API lifespan because Uvicorn reconfigures logging at
    startup and may drop handlers added at import time.
    """
    handler = _installed_handler()
    if handler is None:
        handler = RingBufferHandler(get_buffer(), level=level)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logging.getLogger().addHandler(handler)

    for name in _SERVER_LOGGERS:
        log = logging.getLogger(name)
        log.propagate = True
        log.setLevel(logging.INFO)
    return handler


def get_logs(
    tail: int = 200,
    level: str | None = None,
    logger_prefix: str | None = None,
) -> list[dict[str, str]]:
    return get_buffer().get_entries(tail=tail, level=level, logger_prefix=logger_prefix)


def get_current_level() -> str:
    handler = _installed_handler()
    if handler is not None:
        return logging.getLevelName(handler.level)
    return logging.getLevelName(logging.getLogger().level)


def set_capture_level(level_name: str) -> str:
    """Change the ring-buffer handler's minimum level; returns the new level name.

    Raises
    ------
    ValueError
        If *level_name* is not one of :data:`VALID_LEVELS`.
    """
    level_name = level_name.upper()
    if level_name not in VALID_LEVELS:
        raise ValueError(f"Invalid level: {level_name}. Must be one of {VALID_LEVELS}")

    numeric = getattr(logging, level_name)
    handler = _installed_handler()
    if handler is None:
        install_handler(level=numeric)
    else:
        handler.setLevel(numeric)
    return level_name
