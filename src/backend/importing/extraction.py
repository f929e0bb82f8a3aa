from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from ..models import DataSeries, FieldMapping, QueryResult
from .utils import _coerce_metric_series

logger = logging.getLogger(__name__)


def _frames_for(result: QueryResult, ref_id: Optional[str]) -> List[pd.DataFrame]:
    if ref_id is None:
        return []
    return [f.data for f in result.frames if f.ref_id == ref_id and f.data is not None]


def _ordered_by_time(frame: pd.DataFrame, mapping: FieldMapping) -> pd.DataFrame:
    tcol = mapping.time_column
    if tcol and tcol in frame.columns:
        return frame.sort_values(tcol, kind="stable")
    return frame


def _series_from_frame(frame: pd.DataFrame, mapping: FieldMapping) -> Dict[str, pd.Series]:
    """Per-tag numeric values of one frame, in row order."""
    frame = _ordered_by_time(frame, mapping)
    out: Dict[str, pd.Series] = {}

    tag_col, value_col = mapping.tag_column, mapping.value_column
    if tag_col and value_col and tag_col in frame.columns and value_col in frame.columns:
        frame = frame[frame[tag_col].notna()]
        values = _coerce_metric_series(frame[value_col], decimal_hint=None)
        for tag, group in values.groupby(frame[tag_col].astype(str), sort=False):
            out[str(tag)] = group
        return out

    # Wide frame: one column per tag
    skip = {c for c in (mapping.time_column, tag_col) if c}
    for col in frame.columns:
        if col in skip:
            continue
        numeric = _coerce_metric_series(frame[col], decimal_hint=None)
        if numeric.notna().any():
            out[str(col)] = numeric
    return out


def get_array_of_data(
    result: QueryResult,
    ref_id: Optional[str],
    mapping: FieldMapping,
    is_list_values: bool = False,
    number_of_values: Optional[int] = None,
) -> List[DataSeries]:
    """Extract one series per tag from the frames of query ``ref_id``.

    Without list mode each tag keeps its latest value; in list mode it keeps
    the latest ``number_of_values`` values (all of them when unset).
    """
    collected: Dict[str, List[pd.Series]] = {}
    for frame in _frames_for(result, ref_id):
        for tag, series in _series_from_frame(frame, mapping).items():
            collected.setdefault(tag, []).append(series)

    out: List[DataSeries] = []
    for tag, parts in collected.items():
        values = pd.concat(parts, ignore_index=True).dropna()
        if values.empty:
            continue
        if not is_list_values:
            values = values.iloc[-1:]
        elif number_of_values is not None and number_of_values > 0:
            values = values.iloc[-int(number_of_values):]
        out.append(DataSeries(id=tag, values=tuple(float(v) for v in values.to_numpy())))

    logger.debug("Extracted %d series from query %s", len(out), ref_id)
    return out


def _plain(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    return value


def get_extra_info(result: QueryResult, ref_id: Optional[str], mapping: FieldMapping) -> Optional[Dict[str, Any]]:
    """Named auxiliary values from the extra-info query, or None when it has none."""
    info: Dict[str, Any] = {}
    name_col, value_col = mapping.extra_name_column, mapping.extra_value_column
    for frame in _frames_for(result, ref_id):
        if name_col not in frame.columns or value_col not in frame.columns:
            logger.warning(
                "Extra info query %s lacks columns %r/%r", ref_id, name_col, value_col
            )
            continue
        for name, value in zip(frame[name_col], frame[value_col]):
            if pd.isna(name) or (not isinstance(value, (list, dict)) and pd.isna(value)):
                continue
            info[str(name)] = _plain(value)
    return info or None


__all__ = ["get_array_of_data", "get_extra_info"]
