from __future__ import annotations
import logging
from datetime import date, datetime
from enum import Enum
from typing import Callable, Optional

from core.datetime_utils import date_to_string, datetime_local_to_string, datetime_to_timestamp

from ..datasources import VariableStore
from ..models import (
    DEFAULT_INTERVAL,
    ImportInputs,
    ImportMode,
    LoadingState,
    ModelConfig,
    PendingRequest,
    QueryResult,
)
from .collection_factory import CollectionFactory
from .context import ImportContext
from .extraction import get_array_of_data, get_extra_info

logger = logging.getLogger(__name__)

DATETIME_NO_DATA_MESSAGE = "No data found for the selected time"
DATETIME_SOURCE = "DateTime"
DATETIME_RANGE_SOURCE = "DateTime range"


class ReconcileOutcome(str, Enum):
    IGNORED = "ignored"    # nothing pending, or result not final yet
    STALE = "stale"        # result belongs to a superseded request or input
    FAILED = "failed"      # query reported errors
    EMPTY = "empty"        # query finished without data
    ADDED = "added"        # collection created


StaleListener = Callable[[PendingRequest, QueryResult], None]


def live_key(request: PendingRequest, inputs: ImportInputs) -> Optional[datetime]:
    """Current value of the input the pending request was keyed on."""
    if request.mode is ImportMode.EXTERNAL_VARIABLE:
        return inputs.variable_value
    return inputs.date_time


class ResultReconciler:
    """Matches query results to the pending request and turns them into collections."""

    def __init__(
        self,
        context: ImportContext,
        variables: VariableStore,
        factory: Optional[CollectionFactory] = None,
        *,
        on_stale: Optional[StaleListener] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._context = context
        self._variables = variables
        self._factory = factory or CollectionFactory(context)
        self._on_stale = on_stale
        self._today = today

    # ------------------------------------------------------------------
    def matches(self, request: PendingRequest, result: QueryResult, inputs: ImportInputs) -> bool:
        if result.request_id is not None and result.request_id != request.request_id:
            return False
        return live_key(request, inputs) == request.key

    def on_result(
        self,
        result: QueryResult,
        inputs: ImportInputs,
        model: Optional[ModelConfig],
    ) -> ReconcileOutcome:
        request = self._context.pending
        if request is None or model is None or not result.state.is_terminal:
            return ReconcileOutcome.IGNORED

        if not self.matches(request, result, inputs):
            logger.warning(
                "Discarding stale %s result for request %d (key %s)",
                result.state.value,
                request.request_id,
                request.key,
            )
            if self._on_stale is not None:
                try:
                    self._on_stale(request, result)
                except Exception:
                    logger.warning("Stale-result listener failed", exc_info=True)
            return ReconcileOutcome.STALE

        try:
            if result.state is LoadingState.DONE:
                outcome = self._reconcile_done(request, result, model)
            else:
                outcome = self._reconcile_error(request, result)
        finally:
            self._context.clear_pending()
            # the time variable doubles as a "last import" marker
            self._variables.write(model.var_time, date_to_string(self._today()))
        logger.info("Request %d reconciled: %s", request.request_id, outcome.value)
        return outcome

    # ------------------------------------------------------------------
    def _reconcile_error(self, request: PendingRequest, result: QueryResult) -> ReconcileOutcome:
        messages = [m for m in result.errors if m] or ["Query failed"]
        self._context.notify("error", messages)
        return ReconcileOutcome.FAILED

    def _reconcile_done(self, request: PendingRequest, result: QueryResult, model: ModelConfig) -> ReconcileOutcome:
        is_range = request.mode is ImportMode.TIMESTAMP_RANGE and model.query_range_id is not None
        ref_id = model.query_range_id if is_range else model.query_id
        data = get_array_of_data(
            result,
            ref_id,
            model.columns,
            model.is_list_values,
            model.number_of_values,
        )
        if not data:
            self._context.notify("error", [DATETIME_NO_DATA_MESSAGE])
            return ReconcileOutcome.EMPTY

        extra_info = None
        if model.extra_info is not None:
            extra_info = get_extra_info(result, model.extra_info, model.columns)

        key = str(datetime_to_timestamp(request.key))
        if is_range:
            only_date = model.only_date_range
        else:
            only_date = model.only_date and request.mode is ImportMode.FIXED_TIMESTAMP
        name = _display(request.key, only_date)
        source = DATETIME_SOURCE
        start = None
        if is_range and request.start is not None:
            start = request.start
            name = f"{_display(start, only_date)} to {name}"
            key = f"{datetime_to_timestamp(start)}+{key}"
            source = DATETIME_RANGE_SOURCE

        self._factory.add(
            key,
            name,
            source,
            data,
            date_time=request.key,
            interval=DEFAULT_INTERVAL,
            extra_info=extra_info,
            date_time_start=start,
        )
        return ReconcileOutcome.ADDED


def _display(dt: datetime, only_date: bool) -> str:
    return date_to_string(dt) if only_date else datetime_local_to_string(dt)


__all__ = [
    "DATETIME_NO_DATA_MESSAGE",
    "DATETIME_RANGE_SOURCE",
    "DATETIME_SOURCE",
    "ReconcileOutcome",
    "ResultReconciler",
    "live_key",
]
