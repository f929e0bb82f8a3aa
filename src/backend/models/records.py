from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from .options import DEFAULT_INTERVAL, Interval


class ImportMode(str, Enum):
    FILE_UPLOAD = "file_upload"
    FIXED_TIMESTAMP = "fixed_timestamp"
    TIMESTAMP_RANGE = "timestamp_range"
    EXTERNAL_VARIABLE = "external_variable"
    EXTERNAL_QUERY = "external_query"


DEFAULT_IMPORT_MODE = ImportMode.FIXED_TIMESTAMP


class WorkflowStep(IntEnum):
    SELECT_MODEL = 1
    IMPORT_DATA = 2
    MODIFY_DATA = 3
    PREDICT = 4


# Steps at which data may be imported; MODIFY_DATA is reached after an import.
IMPORT_STEPS = (WorkflowStep.IMPORT_DATA, WorkflowStep.MODIFY_DATA)
POST_IMPORT_STEP = WorkflowStep.MODIFY_DATA


class LoadingState(str, Enum):
    NOT_STARTED = "NotStarted"
    LOADING = "Loading"
    STREAMING = "Streaming"
    DONE = "Done"
    ERROR = "Error"

    @property
    def is_terminal(self) -> bool:
        return self in (LoadingState.DONE, LoadingState.ERROR)


@dataclass
class CsvFile:
    """A file picked by the user; ``text`` wins over ``path`` when both are set."""
    name: str
    path: Optional[str] = None
    text: Optional[str] = None


@dataclass
class ImportInputs:
    """Live values of the import form."""
    file: Optional[CsvFile] = None
    date_time: Optional[datetime] = None
    date_time_start: Optional[datetime] = None
    # Value of the host variable picked in EXTERNAL_VARIABLE mode
    variable_value: Optional[datetime] = None


@dataclass(frozen=True)
class PendingRequest:
    request_id: int
    mode: ImportMode
    key: datetime
    variable: str
    start: Optional[datetime] = None


@dataclass(frozen=True)
class QueryFrame:
    ref_id: str
    data: pd.DataFrame


@dataclass(frozen=True)
class QueryResult:
    """Snapshot pushed by the host every time its queries report a state."""
    state: LoadingState
    frames: Tuple[QueryFrame, ...] = ()
    errors: Tuple[str, ...] = ()
    # Echoed by hosts that can tie a re-query to the write that caused it
    request_id: Optional[int] = None


@dataclass(frozen=True)
class DataSeries:
    id: str
    values: Tuple[float, ...]


@dataclass(frozen=True)
class DataCollection:
    id: str
    name: str
    data: Tuple[DataSeries, ...]
    date_time: Optional[datetime] = None
    date_time_start: Optional[datetime] = None
    interval: Interval = DEFAULT_INTERVAL
    extra_info: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "dateTime": self.date_time.isoformat() if self.date_time else None,
            "dateTimeStart": self.date_time_start.isoformat() if self.date_time_start else None,
            "interval": {"value": self.interval.value, "unit": self.interval.unit},
            "data": [{"id": s.id, "values": list(s.values)} for s in self.data],
            "extraInfo": self.extra_info,
        }


@dataclass(frozen=True)
class RowParseError:
    type: str
    code: str
    message: str
    row: Optional[int] = None

    def alert_payload(self) -> List[str]:
        detail = self.message + (f" (Row: {self.row})" if self.row is not None else "")
        return [f"{self.type}: {self.code}", detail]


@dataclass
class IngestResult:
    data: List[DataSeries] = field(default_factory=list)
    date_time: Optional[datetime] = None
    interval: Optional[Interval] = None
    errors: List[RowParseError] = field(default_factory=list)
    rows_read: int = 0

    @property
    def empty(self) -> bool:
        return not self.data
