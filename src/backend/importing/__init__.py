"""Import engine: CSV ingestion and query-result reconciliation."""

from .collection_factory import CollectionFactory, unique_collection_id
from .context import ImportContext
from .dispatcher import RequestDispatcher
from .errors import DataImportError, ImportDispatchError, IngestError
from .extraction import get_array_of_data, get_extra_info
from .modes import ControlState, available_modes, compute_control_state, required_fields
from .parsers import ingest_csv_file, ingest_csv_text
from .reconciler import ReconcileOutcome, ResultReconciler

__all__ = [
    "CollectionFactory",
    "ControlState",
    "DataImportError",
    "ImportContext",
    "ImportDispatchError",
    "IngestError",
    "ReconcileOutcome",
    "RequestDispatcher",
    "ResultReconciler",
    "available_modes",
    "compute_control_state",
    "get_array_of_data",
    "get_extra_info",
    "ingest_csv_file",
    "ingest_csv_text",
    "required_fields",
    "unique_collection_id",
]
