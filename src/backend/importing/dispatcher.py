from __future__ import annotations
import logging
from datetime import datetime
from typing import Optional

from core.datetime_utils import datetime_local_to_string, format_for_variable

from ..datasources import VariableStore
from ..models import (
    CsvFile,
    ImportInputs,
    ImportMode,
    ImportOptions,
    IngestResult,
    ModelConfig,
    PendingRequest,
)
from .collection_factory import CollectionFactory
from .context import ImportContext
from .errors import ImportDispatchError
from .parsers import ingest_csv_file, ingest_csv_text

logger = logging.getLogger(__name__)

CSV_NO_DATA_MESSAGE = "The CSV file has no data for this model"
CSV_SOURCE = "CSV"


class RequestDispatcher:
    """Runs the action an import mode requires.

    File imports complete synchronously. Timestamp based modes only write the
    host variables and leave a pending request for the reconciler.
    """

    def __init__(
        self,
        context: ImportContext,
        variables: VariableStore,
        factory: Optional[CollectionFactory] = None,
        options: Optional[ImportOptions] = None,
    ) -> None:
        self._context = context
        self._variables = variables
        self._factory = factory or CollectionFactory(context)
        self._options = options or ImportOptions()

    def dispatch(self, mode: ImportMode, inputs: ImportInputs, model: Optional[ModelConfig]) -> Optional[PendingRequest]:
        """Start an import. Returns the pending request, or None for file imports."""
        if model is None:
            raise ImportDispatchError("No model selected")

        if mode is ImportMode.FILE_UPLOAD:
            if inputs.file is None:
                raise ImportDispatchError("No file selected")
            self.import_file(inputs.file, model)
            return None

        if mode is ImportMode.FIXED_TIMESTAMP:
            if inputs.date_time is None:
                raise ImportDispatchError("No timestamp selected")
            return self.import_date_time(inputs.date_time, model, mode)

        if mode is ImportMode.EXTERNAL_VARIABLE:
            if inputs.variable_value is None:
                raise ImportDispatchError("No variable selected")
            return self.import_date_time(inputs.variable_value, model, mode)

        if mode is ImportMode.TIMESTAMP_RANGE:
            if inputs.date_time_start is None or inputs.date_time is None:
                raise ImportDispatchError("Range needs a start and a stop")
            return self.import_date_time_range(inputs.date_time_start, inputs.date_time, model)

        raise ImportDispatchError(f"Import mode {mode.value} cannot be dispatched")

    # ------------------------------------------------------------------
    def import_file(self, file: CsvFile, model: ModelConfig) -> IngestResult:
        if file.text is not None:
            result = ingest_csv_text(file.text, model, self._options)
        elif file.path is not None:
            result = ingest_csv_file(file.path, model, self._options)
        else:
            raise ImportDispatchError(f"File {file.name} has no content")

        for err in result.errors:
            self._context.notify("error", err.alert_payload())

        if result.empty:
            self._context.notify("error", [CSV_NO_DATA_MESSAGE])
            return result

        name = file.name
        if result.date_time is not None:
            name += f" ({datetime_local_to_string(result.date_time)})"
        self._factory.add(
            file.name,
            name,
            CSV_SOURCE,
            result.data,
            date_time=result.date_time,
            interval=result.interval,
        )
        return result

    def import_date_time(self, dt: datetime, model: ModelConfig, mode: ImportMode) -> PendingRequest:
        request = self._register(mode, dt, model.var_time)
        self._variables.write(
            model.var_time,
            format_for_variable(dt, only_date=model.only_date),
            request_id=request.request_id,
        )
        return request

    def import_date_time_range(self, start: datetime, stop: datetime, model: ModelConfig) -> PendingRequest:
        if model.var_time_start is None:
            raise ImportDispatchError(f"Model {model.id} has no start variable for ranges")
        request = self._register(ImportMode.TIMESTAMP_RANGE, stop, model.var_time, start=start)
        only_date = model.only_date_range
        # start first: the stop write is the one the range query waits for
        self._variables.write(
            model.var_time_start,
            format_for_variable(start, only_date=only_date),
            request_id=request.request_id,
        )
        self._variables.write(
            model.var_time,
            format_for_variable(stop, only_date=only_date),
            request_id=request.request_id,
        )
        return request

    def _register(
        self,
        mode: ImportMode,
        key: datetime,
        variable: str,
        *,
        start: Optional[datetime] = None,
    ) -> PendingRequest:
        request = PendingRequest(
            request_id=self._context.next_request_id(),
            mode=mode,
            key=key,
            variable=variable,
            start=start,
        )
        previous = self._context.set_pending(request)
        if previous is not None:
            logger.info(
                "Request %d supersedes unresolved request %d", request.request_id, previous.request_id
            )
        logger.info("Dispatched %s request %d for %s", mode.value, request.request_id, key)
        return request


__all__ = ["CSV_NO_DATA_MESSAGE", "CSV_SOURCE", "RequestDispatcher"]
