"""Data model shared by the importing engine and the Qt adapters."""

from .options import DEFAULT_INTERVAL, FieldMapping, ImportOptions, Interval, ModelConfig
from .records import (
    DEFAULT_IMPORT_MODE,
    IMPORT_STEPS,
    POST_IMPORT_STEP,
    CsvFile,
    DataCollection,
    DataSeries,
    ImportInputs,
    ImportMode,
    IngestResult,
    LoadingState,
    PendingRequest,
    QueryFrame,
    QueryResult,
    RowParseError,
    WorkflowStep,
)

__all__ = [
    "DEFAULT_IMPORT_MODE",
    "DEFAULT_INTERVAL",
    "IMPORT_STEPS",
    "POST_IMPORT_STEP",
    "CsvFile",
    "DataCollection",
    "DataSeries",
    "FieldMapping",
    "ImportInputs",
    "ImportMode",
    "ImportOptions",
    "IngestResult",
    "Interval",
    "LoadingState",
    "ModelConfig",
    "PendingRequest",
    "QueryFrame",
    "QueryResult",
    "RowParseError",
    "WorkflowStep",
]
