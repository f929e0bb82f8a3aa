from __future__ import annotations
import csv
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd
import logging

from ..models import (
    DataSeries,
    ImportOptions,
    IngestResult,
    Interval,
    ModelConfig,
    RowParseError,
)
from .errors import IngestError
from .utils import (
    PathLike,
    _coerce_metric_series,
    clean_cell,
    guess_delimiter,
    parse_timestamp_cell,
    read_text_with_encoding_fallback,
)

logger = logging.getLogger(__name__)

TIMESTAMP_LABELS = frozenset({"date", "datetime", "date_time", "timestamp", "time"})
INTERVAL_LABELS = frozenset({"interval", "sampling", "sampling_interval"})

Row = Tuple[int, List[str]]


def _guess_delimiter(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return guess_delimiter(line) or ","
    return ","


def tokenize_rows(text: str, delimiter: str) -> Tuple[List[Row], List[RowParseError]]:
    """Split ``text`` into non-blank rows of stripped cells.

    Each line is tokenized on its own so a malformed row only costs itself.
    Row indexes count non-blank rows from 0.
    """
    rows: List[Row] = []
    errors: List[RowParseError] = []
    index = 0
    for line in text.splitlines():
        if not line.strip():
            continue
        try:
            cells = next(csv.reader([line], delimiter=delimiter, strict=True))
        except csv.Error as exc:
            errors.append(RowParseError("Quotes", "InvalidQuotes", str(exc), index))
            index += 1
            continue
        cells = [c.strip() for c in cells]
        # greedy: rows made of empty cells only are not rows at all
        if not any(cells):
            continue
        while cells and not cells[-1]:
            cells.pop()
        rows.append((index, cells))
        index += 1
    return rows, errors


def _row_label(cells: Sequence[str]) -> str:
    return cells[0].strip().lower().replace(" ", "_") if cells else ""


def _find_timestamp(rows: List[Row], options: ImportOptions) -> Tuple[Optional[datetime], Optional[int]]:
    """Return (timestamp, row index) of the timestamp row, if any."""
    for idx, cells in rows:
        if _row_label(cells) in TIMESTAMP_LABELS and len(cells) > 1:
            ts = parse_timestamp_cell(
                cells[1],
                dayfirst=options.assume_dayfirst,
                dot_time_as_colon=options.dot_time_as_colon,
                explicit_formats=options.datetime_formats,
            )
            if ts is not None:
                return ts.to_pydatetime(), idx

    # A lone timestamp on the first row also counts
    if rows:
        idx, cells = rows[0]
        if len(cells) == 1:
            ts = parse_timestamp_cell(
                cells[0],
                dayfirst=options.assume_dayfirst,
                dot_time_as_colon=options.dot_time_as_colon,
                explicit_formats=options.datetime_formats,
            )
            if ts is not None:
                return ts.to_pydatetime(), idx
    return None, None


def _find_interval(rows: List[Row], options: ImportOptions) -> Tuple[Optional[Interval], Optional[int]]:
    for idx, cells in rows:
        if _row_label(cells) not in INTERVAL_LABELS or len(cells) < 2:
            continue
        value = _coerce_metric_series(pd.Series([cells[1]]), decimal_hint=options.csv_decimal).iloc[0]
        if pd.isna(value):
            continue
        unit = clean_cell(cells[2]) if len(cells) > 2 else None
        return Interval(value=float(value), unit=unit or options.default_interval.unit), idx
    return None, None


def _check_widths(rows: List[Row]) -> Tuple[List[Row], List[RowParseError]]:
    """Drop value rows whose cell count differs from the usual one.

    The usual count is the most common width; ties go to the earliest row.
    """
    if not rows:
        return [], []
    widths = pd.Series([len(cells) for _, cells in rows])
    common = set(widths.mode())
    expected = int(next(w for w in widths if w in common))
    kept: List[Row] = []
    errors: List[RowParseError] = []
    for idx, cells in rows:
        n = len(cells)
        if n == expected:
            kept.append((idx, cells))
            continue
        code = "TooFewFields" if n < expected else "TooManyFields"
        message = f"Expected {expected} fields but parsed {n}"
        errors.append(RowParseError("FieldMismatch", code, message, idx))
    return kept, errors


def rows_to_series(rows: List[Row], model: ModelConfig, options: ImportOptions) -> List[DataSeries]:
    """Map value rows through the model's field mapping into per-tag series."""
    if not rows:
        return []
    tag_index = model.columns.tag_index
    width = max(len(cells) for _, cells in rows)
    raw = pd.DataFrame(
        [cells + [None] * (width - len(cells)) for _, cells in rows],
        dtype=object,
    )
    if tag_index >= raw.shape[1]:
        return []

    tags = raw.iloc[:, tag_index].map(clean_cell)
    value_cols = [c for c in range(raw.shape[1]) if c != tag_index]
    numeric = pd.DataFrame(
        {c: _coerce_metric_series(raw.iloc[:, c], decimal_hint=options.csv_decimal) for c in value_cols},
        index=raw.index,
    )

    by_tag: Dict[str, DataSeries] = {}
    for pos, tag in tags.items():
        if tag is None:
            continue
        values = numeric.loc[pos].dropna() if value_cols else pd.Series(dtype=float)
        if values.empty:
            continue
        if tag in by_tag:
            logger.info("Tag %s appears more than once; keeping the first row", tag)
            continue
        by_tag[tag] = DataSeries(id=tag, values=tuple(float(v) for v in values.to_numpy()))

    if model.tags:
        return [by_tag[t] for t in model.tags if t in by_tag]
    return list(by_tag.values())


def ingest_csv_text(
    text: str,
    model: Optional[ModelConfig] = None,
    options: Optional[ImportOptions] = None,
) -> IngestResult:
    """Parse header-less delimited text into a collection-shaped result.

    Row errors are collected on the result and never raised.
    """
    model = model or ModelConfig()
    options = options or ImportOptions()
    delimiter = options.csv_delimiter or _guess_delimiter(text)
    if options.csv_decimal is None and delimiter == ";":
        options = replace(options, csv_decimal=",")

    rows, errors = tokenize_rows(text, delimiter)
    rows_read = len(rows) + len(errors)

    date_time, ts_row = _find_timestamp(rows, options)
    interval, interval_row = _find_interval(rows, options)
    consumed = {r for r in (ts_row, interval_row) if r is not None}
    value_rows = [(idx, cells) for idx, cells in rows if idx not in consumed]

    value_rows, width_errors = _check_widths(value_rows)
    errors.extend(width_errors)
    errors.sort(key=lambda e: (e.row if e.row is not None else -1))

    data = rows_to_series(value_rows, model, options)
    for err in errors:
        logger.warning("CSV row %s skipped: %s: %s (%s)", err.row, err.type, err.code, err.message)
    logger.info(
        "Parsed %d CSV rows into %d series (%d errors, timestamp=%s)",
        rows_read,
        len(data),
        len(errors),
        date_time,
    )
    return IngestResult(
        data=data,
        date_time=date_time,
        interval=interval,
        errors=errors,
        rows_read=rows_read,
    )


def ingest_csv_file(
    path: PathLike,
    model: Optional[ModelConfig] = None,
    options: Optional[ImportOptions] = None,
) -> IngestResult:
    options = options or ImportOptions()
    try:
        text = read_text_with_encoding_fallback(Path(path), options.csv_encoding)
    except (OSError, LookupError) as exc:
        raise IngestError(f"Could not read {path}: {exc}") from exc
    return ingest_csv_text(text, model, options)
