from __future__ import annotations
import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union


@dataclass(frozen=True)
class Interval:
    """Sampling interval attached to a collection (``value`` units of ``unit``)."""
    value: float = 1
    unit: str = "h"


DEFAULT_INTERVAL = Interval()


@dataclass
class FieldMapping:
    """Which columns of a query frame (or cells of a CSV row) hold what.

    Resolved once per model; nothing is looked up by name at arbitrary depth.
    """
    # Query frames
    tag_column: Optional[str] = "tag"
    # None -> every numeric non-time column is a series named after the column
    value_column: Optional[str] = "value"
    time_column: Optional[str] = "time"
    # Extra-info frame: one row per named value
    extra_name_column: str = "name"
    extra_value_column: str = "value"

    # CSV rows: cell holding the tag, the others are values
    tag_index: int = 0


@dataclass
class ModelConfig:
    """Import-relevant part of a model definition."""
    id: str = ""
    description: str = ""

    # Query ref ids
    query_id: Optional[str] = None
    query_range_id: Optional[str] = None
    extra_info: Optional[str] = None

    # Host variables written by the dispatcher
    var_time: str = "time"
    var_time_start: Optional[str] = None

    # Formatting of the written values
    only_date: bool = False
    only_date_range: bool = False

    # Extraction
    is_list_values: bool = False
    number_of_values: Optional[int] = None

    tags: List[str] = field(default_factory=list)
    columns: FieldMapping = field(default_factory=FieldMapping)

    @property
    def has_range(self) -> bool:
        return self.var_time_start is not None and self.query_range_id is not None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ModelConfig":
        """Build from panel options; camelCase and snake_case keys are both accepted."""
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in payload.items():
            name = _snake_case(str(key))
            if name in _MODEL_ALIASES:
                name = _MODEL_ALIASES[name]
            if name not in known:
                continue
            values[name] = value

        tags = values.get("tags") or []
        values["tags"] = [
            str(t.get("id")) if isinstance(t, Mapping) else str(t)
            for t in tags
        ]

        columns = values.get("columns")
        mapping = columns if isinstance(columns, FieldMapping) else FieldMapping()
        if isinstance(columns, Mapping):
            mapping = _mapping_from_dict(columns)
        # Flat column options as used by the panel editor
        for key, attr in (
            ("column_tag", "tag_column"),
            ("column_value", "value_column"),
            ("column_name_extra_info", "extra_name_column"),
            ("column_value_extra_info", "extra_value_column"),
        ):
            for src_key, value in payload.items():
                if _snake_case(str(src_key)) == key and value is not None:
                    setattr(mapping, attr, value)
        values["columns"] = mapping

        if values.get("number_of_values") is not None:
            values["number_of_values"] = int(values["number_of_values"])
        return cls(**values)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "ModelConfig":
        with Path(path).open("r", encoding="utf-8") as fh:
            payload = json.load(fh)
        if not isinstance(payload, dict):
            raise ValueError(f"Model file {path} must contain a JSON object")
        return cls.from_dict(payload)


@dataclass
class ImportOptions:
    # CSV reader hints; None means guess
    csv_delimiter: Optional[str] = None
    csv_decimal: Optional[str] = None
    csv_encoding: Optional[str] = None

    # Timestamp handling
    assume_dayfirst: bool = True
    # Treat "9.00" as "9:00" etc. When False we won't rewrite dot-separated times.
    dot_time_as_colon: bool = True
    datetime_formats: Optional[List[str]] = None

    default_interval: Interval = DEFAULT_INTERVAL


_MODEL_ALIASES = {
    "query": "query_id",
    "query_range": "query_range_id",
}


def _snake_case(name: str) -> str:
    out: List[str] = []
    for i, ch in enumerate(name):
        if ch.isupper() and i > 0 and not name[i - 1].isupper():
            out.append("_")
        out.append(ch.lower())
    return "".join(out)


def _mapping_from_dict(payload: Mapping[str, Any]) -> FieldMapping:
    known = {f.name for f in fields(FieldMapping)}
    values = {}
    for key, value in payload.items():
        name = _snake_case(str(key))
        if name in known:
            values[name] = value
    return FieldMapping(**values)
