from __future__ import annotations
import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VariableWrite:
    name: str
    value: str
    # Request that caused the write, when the writer knows it
    request_id: Optional[int] = None


Listener = Callable[[VariableWrite], None]


class VariableStore:
    """Write-only view of the host's template variables.

    Writing a variable makes the host re-run its queries; listeners are how
    the host learns about writes. The importer never reads values back.
    """

    def __init__(self, max_history: int = 200) -> None:
        self._listeners: List[Listener] = []
        # recent writes only; the host owns the values
        self._history: Deque[VariableWrite] = deque(maxlen=max_history)
        self._lock = threading.RLock()

    def write(self, name: str, value: str, *, request_id: Optional[int] = None) -> None:
        event = VariableWrite(name=name, value=value, request_id=request_id)
        with self._lock:
            self._history.append(event)
            listeners = list(self._listeners)
        logger.debug("Variable %s <- %s (request %s)", name, value, request_id)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.warning("Variable listener failed for %s", name, exc_info=True)

    # ------------------------------------------------------------------
    def add_listener(self, listener: Listener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @property
    def history(self) -> List[VariableWrite]:
        with self._lock:
            return list(self._history)


__all__ = ["VariableStore", "VariableWrite"]
