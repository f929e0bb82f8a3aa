from __future__ import annotations
from datetime import date, datetime, timezone

import pandas as pd


def drop_timezone_preserving_wall(value):
    """Return ``value`` without any timezone information, preserving wall time."""
    if value is None or value is pd.NaT:
        return pd.NaT
    if isinstance(value, pd.Timestamp):
        if value.tzinfo is not None:
            return pd.Timestamp(value.to_pydatetime().replace(tzinfo=None))
        return value
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.replace(tzinfo=None)
        return value
    return value


def to_local(dt: datetime) -> datetime:
    """Return ``dt`` as an aware datetime in the local timezone.

    Naive values are taken to be local wall-clock time already.
    """
    if isinstance(dt, pd.Timestamp):
        dt = dt.to_pydatetime()
    return dt.astimezone()


def datetime_to_string(dt: datetime) -> str:
    """ISO-8601 UTC string with millisecond precision, e.g. ``2024-05-01T08:30:00.000Z``."""
    utc = to_local(dt).astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def date_to_string(value: date | datetime) -> str:
    """Local calendar date as ``YYYY-MM-DD``."""
    if isinstance(value, datetime):
        value = to_local(value).date()
    return value.strftime("%Y-%m-%d")


def datetime_local_to_string(dt: datetime | None) -> str:
    if dt is None:
        return ""
    return to_local(dt).strftime("%Y-%m-%d %H:%M")


def datetime_to_timestamp(dt: datetime) -> int:
    """Whole seconds since the epoch."""
    return int(to_local(dt).timestamp() // 1)


def format_for_variable(dt: datetime, *, only_date: bool) -> str:
    """Text written to a host variable for ``dt``."""
    return date_to_string(dt) if only_date else datetime_to_string(dt)


__all__ = [
    "date_to_string",
    "datetime_local_to_string",
    "datetime_to_string",
    "datetime_to_timestamp",
    "drop_timezone_preserving_wall",
    "format_for_variable",
    "to_local",
]
