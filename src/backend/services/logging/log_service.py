from __future__ import annotations
import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, TextIO


@dataclass(frozen=True)
class LogEvent:
    """One handled record, kept for callers that inspect a run afterwards."""

    message: str
    level: int
    logger_name: str
    created: float
    formatted: str


class LogService(logging.Handler):
    """Root handler: writes formatted records to a stream and keeps the recent ones.

    There is a single instance per process (:func:`get_log_service`), so the
    console output and the history always agree.
    """

    def __init__(self, max_events: int = 1000) -> None:
        super().__init__(level=logging.NOTSET)
        self._lock = threading.RLock()
        self._events: Deque[LogEvent] = deque(maxlen=max_events)
        self._stream: Optional[TextIO] = None
        self._installed = False
        self.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s", "%Y-%m-%d %H:%M:%S"))

    def set_stream(self, stream: Optional[TextIO]) -> None:
        """Where formatted records go; ``None`` keeps them in memory only."""
        with self._lock:
            self._stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            formatted = self.format(record)
            event = LogEvent(
                message=record.getMessage(),
                level=record.levelno,
                logger_name=record.name,
                created=record.created,
                formatted=formatted,
            )
            with self._lock:
                self._events.append(event)
                stream = self._stream
            if stream is not None:
                stream.write(formatted + "\n")
                stream.flush()
        except Exception:
            self.handleError(record)

    def events(self, *, min_level: int = logging.NOTSET) -> List[LogEvent]:
        with self._lock:
            return [e for e in self._events if e.level >= min_level]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def ensure_installed(self) -> None:
        """Attach the handler to the root logger once."""
        with self._lock:
            if self._installed:
                return
            root = logging.getLogger()
            if self not in root.handlers:
                root.addHandler(self)
            self._installed = True


_service = LogService()


def get_log_service() -> LogService:
    return _service
