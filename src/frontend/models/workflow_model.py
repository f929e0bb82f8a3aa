from __future__ import annotations
from typing import Optional

from PySide6.QtCore import QObject, Signal

from backend.importing import ImportContext
from backend.models import WorkflowStep


class WorkflowModel(QObject):
    """Qt face of :class:`ImportContext`: exposes the step marker as a signal."""

    step_changed = Signal(int)

    def __init__(self, context: ImportContext, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._context = context
        context.add_step_listener(self._on_step)

    @property
    def context(self) -> ImportContext:
        return self._context

    @property
    def current_step(self) -> Optional[WorkflowStep]:
        return self._context.current_step

    def advance_step(self, step: WorkflowStep) -> bool:
        return self._context.advance_step(step)

    def _on_step(self, step: WorkflowStep) -> None:
        self.step_changed.emit(int(step))


__all__ = ["WorkflowModel"]
