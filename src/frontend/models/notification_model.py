from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence

from PySide6.QtCore import QObject, Signal

__all__ = ["Notification", "NotificationModel"]


@dataclass(frozen=True)
class Notification:
    kind: str
    messages: tuple


class NotificationModel(QObject):
    """In-app notification bus (success/error/warning toasts)."""

    published = Signal(str, list)
    cleared = Signal()

    def __init__(self, parent: Optional[QObject] = None, max_items: int = 200) -> None:
        super().__init__(parent)
        self._items: List[Notification] = []
        self._max_items = max_items

    def publish(self, kind: str, messages: Sequence[str]) -> None:
        payload = [str(m) for m in messages]
        self._items.append(Notification(kind, tuple(payload)))
        del self._items[: -self._max_items]
        self.published.emit(kind, payload)

    def success(self, *messages: str) -> None:
        self.publish("success", messages)

    def error(self, *messages: str) -> None:
        self.publish("error", messages)

    # ------------------------------------------------------------------
    def items(self, kind: Optional[str] = None) -> List[Notification]:
        return [n for n in self._items if kind is None or n.kind == kind]

    def clear(self) -> None:
        if not self._items:
            return
        self._items.clear()
        self.cleared.emit()
