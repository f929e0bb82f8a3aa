from __future__ import annotations
import logging
from datetime import datetime
from typing import List, Optional

from PySide6.QtCore import QObject, Signal

from backend.datasources import VariableStore
from backend.importing import (
    ControlState,
    DataImportError,
    ImportContext,
    ReconcileOutcome,
    RequestDispatcher,
    ResultReconciler,
    available_modes,
    compute_control_state,
)
from backend.models import (
    DEFAULT_IMPORT_MODE,
    CsvFile,
    DataCollection,
    ImportInputs,
    ImportMode,
    ImportOptions,
    ModelConfig,
    PendingRequest,
    QueryResult,
)
from core.settings_manager import SettingsManager

from ..models.workflow_model import WorkflowModel

logger = logging.getLogger(__name__)


class ImportViewModel(QObject):
    """View-model behind the import form.

    Owns the live form inputs, recomputes the enable/disable state on every
    change and forwards query results from the host to the reconciler.
    """

    # inputs_disabled, trigger_disabled
    control_state_changed = Signal(bool, bool)
    busy_changed = Signal(bool)
    mode_changed = Signal(str)
    modes_changed = Signal(list)
    collections_changed = Signal(list)
    # request id, request key
    stale_result_discarded = Signal(int, object)

    def __init__(
        self,
        workflow: WorkflowModel,
        variables: VariableStore,
        settings: Optional[SettingsManager] = None,
        options: Optional[ImportOptions] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._workflow = workflow
        self._settings = settings
        self._model: Optional[ModelConfig] = None
        self._inputs = ImportInputs()
        self._mode = settings.get_import_mode() if settings is not None else DEFAULT_IMPORT_MODE

        if options is None and settings is not None:
            options = settings.import_options()
        self._dispatcher = RequestDispatcher(self.context, variables, options=options)
        self._reconciler = ResultReconciler(self.context, variables, on_stale=self._on_stale)
        self._state = self._compute_state()

        workflow.step_changed.connect(self._on_step_changed)

    # ------------------------------------------------------------------
    @property
    def context(self) -> ImportContext:
        return self._workflow.context

    @property
    def mode(self) -> ImportMode:
        return self._mode

    @property
    def model(self) -> Optional[ModelConfig]:
        return self._model

    @property
    def inputs(self) -> ImportInputs:
        return self._inputs

    @property
    def control_state(self) -> ControlState:
        return self._state

    @property
    def busy(self) -> bool:
        return self.context.pending is not None

    @property
    def collections(self) -> List[DataCollection]:
        return list(self.context.collections)

    def available_modes(self) -> List[ImportMode]:
        return available_modes(self._model)

    # --- form setters --------------------------------------------------
    def set_model(self, model: Optional[ModelConfig]) -> None:
        self._model = model
        modes = self.available_modes()
        self.modes_changed.emit([m.value for m in modes])
        if self._mode not in modes:
            self.set_mode(DEFAULT_IMPORT_MODE)
        else:
            self._refresh()

    def set_mode(self, mode: ImportMode) -> None:
        mode = ImportMode(mode)
        if mode is self._mode:
            return
        self._mode = mode
        if self._settings is not None:
            self._settings.set_import_mode(mode)
        self.mode_changed.emit(mode.value)
        self._refresh()

    def set_file(self, file: Optional[CsvFile]) -> None:
        self._inputs.file = file
        self._refresh()

    def set_date_time(self, value: Optional[datetime]) -> None:
        self._inputs.date_time = value
        self._refresh()

    def set_date_time_start(self, value: Optional[datetime]) -> None:
        self._inputs.date_time_start = value
        self._refresh()

    def set_variable_value(self, value: Optional[datetime]) -> None:
        self._inputs.variable_value = value
        self._refresh()

    # --- actions --------------------------------------------------------
    def add_data(self) -> Optional[PendingRequest]:
        """Run the import for the current mode. Ignored while the trigger is disabled."""
        if self._state.trigger_disabled:
            logger.debug("Import trigger is disabled for mode %s", self._mode.value)
            return None
        before = len(self.context.collections)
        try:
            request = self._dispatcher.dispatch(self._mode, self._inputs, self._model)
        except DataImportError as exc:
            logger.warning("Import failed: %s", exc)
            self.context.notify("error", [str(exc)])
            return None
        finally:
            self._after_change(before)
        return request

    def on_query_result(self, result: QueryResult) -> ReconcileOutcome:
        """Entry point for the host's query-state updates."""
        before = len(self.context.collections)
        try:
            return self._reconciler.on_result(result, self._inputs, self._model)
        finally:
            self._after_change(before)

    # ------------------------------------------------------------------
    def _compute_state(self) -> ControlState:
        return compute_control_state(self.context.current_step, self._mode, self._inputs)

    def _refresh(self) -> None:
        state = self._compute_state()
        self._state = state
        self.control_state_changed.emit(state.inputs_disabled, state.trigger_disabled)

    def _after_change(self, collections_before: int) -> None:
        self.busy_changed.emit(self.busy)
        if len(self.context.collections) != collections_before:
            self.collections_changed.emit(self.collections)

    def _on_step_changed(self, _step: int) -> None:
        self._refresh()

    def _on_stale(self, request: PendingRequest, _result: QueryResult) -> None:
        self.stale_result_discarded.emit(request.request_id, request.key)


__all__ = ["ImportViewModel"]
