from __future__ import annotations
import re
import warnings
from pathlib import Path
from typing import Iterable, Optional, Union

import pandas as pd

from core.datetime_utils import drop_timezone_preserving_wall

PathLike = Union[str, Path]

# Clock times written with dots ("8.30", "01.05.2024 8.30.15") at the end of a cell
_DOT_TIME_RE = re.compile(r"^(?:(?P<date>.+?)\s+)?(?P<h>\d{1,2})\.(?P<m>\d{2})(?:\.(?P<s>\d{2}))?$")
_ISO_DATE_RE = re.compile(r"^\d{4}[-/.]\d{1,2}[-/.]\d{1,2}(?:\D|$)")
_PLAIN_NUMBER_RE = re.compile(r"^[+-]?\d+(?:[.,]\d+)?$")

_DELIMITERS = ("\t", ";", ",", "|")
# utf-8-sig first: it also reads plain utf-8 and strips a BOM
_FALLBACK_ENCODINGS = ("utf-8-sig", "cp1252", "latin-1")


def clean_cell(x) -> Optional[str]:
    if x is None:
        return None
    if isinstance(x, float) and pd.isna(x):
        return None
    s = str(x).strip()
    if not s or s.lower() in {"nan", "none"}:
        return None
    return s


def _dot_time_to_colon(text: str) -> str:
    m = _DOT_TIME_RE.match(text)
    if not m:
        return text
    clock = f"{int(m['h']):02d}:{m['m']}" + (f":{m['s']}" if m["s"] else "")
    return f"{m['date']} {clock}" if m["date"] else clock


def _to_timestamp(text: str, fmt: Optional[str], dayfirst: bool):
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", UserWarning)
        try:
            return pd.to_datetime(text, errors="coerce", format=fmt or "mixed", dayfirst=dayfirst)
        except (TypeError, ValueError):
            return pd.NaT


def parse_timestamp_cell(
    value,
    *,
    dayfirst: bool = True,
    dot_time_as_colon: bool = True,
    explicit_formats: Optional[Iterable[str]] = None,
) -> Optional[pd.Timestamp]:
    """Parse a single cell; ``None`` when it is not a timestamp.

    Plain numbers never count. Explicit formats are tried first, then the
    mixed parser: year-first for ISO-looking dates, ``dayfirst`` otherwise,
    and finally the opposite day order. Zone information is dropped and the
    wall-clock time kept.
    """
    text = clean_cell(value)
    if text is None or _PLAIN_NUMBER_RE.match(text):
        return None
    if dot_time_as_colon:
        text = _dot_time_to_colon(text)

    attempts = [(fmt, dayfirst) for fmt in explicit_formats or ()]
    if _ISO_DATE_RE.match(text):
        attempts.append((None, False))
    attempts += [(None, dayfirst), (None, not dayfirst)]
    for fmt, first in attempts:
        parsed = _to_timestamp(text, fmt, first)
        if not pd.isna(parsed):
            return pd.Timestamp(drop_timezone_preserving_wall(parsed))
    return None


def _coerce_metric_series(ser: pd.Series, *, decimal_hint: Optional[str]) -> pd.Series:
    """Numbers from metric cells; with ``decimal_hint=","`` '123,45' reads as 123.45."""

    def _clean(x):
        if not isinstance(x, str):
            return x
        x = x.replace("\xa0", "").strip()
        return x.replace(",", ".") if decimal_hint == "," else x

    return pd.to_numeric(ser.astype("object").map(_clean), errors="coerce")


def guess_delimiter(line: str) -> Optional[str]:
    """Most frequent delimiter in ``line``; ties go to the earlier candidate, so ";" beats ","."""
    count, _, delimiter = max((line.count(d), -i, d) for i, d in enumerate(_DELIMITERS))
    return delimiter if count else None


def read_text_with_encoding_fallback(path: PathLike, user_encoding: Optional[str] = None) -> str:
    """Decode ``path`` with the user's encoding or the first fallback that fits.

    latin-1 decodes any byte string, so reading only fails on I/O errors or an
    unknown ``user_encoding`` (``LookupError``).
    """
    raw = Path(path).read_bytes()
    for encoding in dict.fromkeys(e for e in (user_encoding, *_FALLBACK_ENCODINGS) if e):
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError:
            continue
    return raw.decode("latin-1")


__all__ = [
    "PathLike",
    "clean_cell",
    "guess_delimiter",
    "parse_timestamp_cell",
    "read_text_with_encoding_fallback",
]
