from __future__ import annotations
import itertools
import logging
from typing import Callable, List, Optional, Sequence

from ..models import DataCollection, PendingRequest, WorkflowStep

logger = logging.getLogger(__name__)

# Callback signatures
Notifier = Callable[[str, Sequence[str]], None]
StepListener = Callable[[WorkflowStep], None]


class ImportContext:
    """Workflow state shared by the import components.

    Holds the current workflow step, the one outstanding request and the
    caller-owned collection list. Components receive the context explicitly
    and change it only through the methods below.
    """

    def __init__(
        self,
        collections: Optional[List[DataCollection]] = None,
        *,
        step: Optional[WorkflowStep] = WorkflowStep.IMPORT_DATA,
        notify: Optional[Notifier] = None,
    ) -> None:
        self.collections: List[DataCollection] = collections if collections is not None else []
        self._step = step
        self._pending: Optional[PendingRequest] = None
        self._ids = itertools.count(1)
        self._notify = notify
        self._step_listeners: List[StepListener] = []

    # ------------------------------------------------------------------
    @property
    def current_step(self) -> Optional[WorkflowStep]:
        return self._step

    def advance_step(self, step: WorkflowStep) -> bool:
        """Move forward to ``step``; never moves backwards. Returns True if it moved."""
        if self._step is not None and step <= self._step:
            return False
        self._step = step
        for listener in list(self._step_listeners):
            try:
                listener(step)
            except Exception:
                logger.warning("Step listener failed", exc_info=True)
        return True

    def add_step_listener(self, listener: StepListener) -> None:
        if listener not in self._step_listeners:
            self._step_listeners.append(listener)

    # ------------------------------------------------------------------
    @property
    def pending(self) -> Optional[PendingRequest]:
        return self._pending

    def next_request_id(self) -> int:
        return next(self._ids)

    def set_pending(self, request: PendingRequest) -> Optional[PendingRequest]:
        """Replace the outstanding request and return the one it superseded."""
        previous = self._pending
        self._pending = request
        return previous

    def clear_pending(self) -> None:
        self._pending = None

    # ------------------------------------------------------------------
    def notify(self, kind: str, messages: Sequence[str]) -> None:
        """Publish on the notification bus; fire and forget."""
        payload = [str(m) for m in messages if m is not None]
        log_level = logging.ERROR if kind == "error" else logging.INFO
        logger.log(log_level, "Notification (%s): %s", kind, " | ".join(payload))
        if self._notify is None:
            return
        try:
            self._notify(kind, payload)
        except Exception:
            logger.warning("Notification listener failed", exc_info=True)


__all__ = ["ImportContext", "Notifier", "StepListener"]
