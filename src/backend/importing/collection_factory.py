from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from ..models import (
    DEFAULT_INTERVAL,
    POST_IMPORT_STEP,
    DataCollection,
    DataSeries,
    Interval,
)
from .context import ImportContext

logger = logging.getLogger(__name__)

COLLECTION_ADDED_MESSAGE = "Data collection added"


def unique_collection_id(existing_ids: Iterable[str], key: str, source: str) -> Tuple[str, int]:
    """Return ``(id, repetition)`` for a new collection built from ``key``.

    The repetition starts at the number of ids containing ``key`` and grows
    until ``source:key_<rep>`` is free.
    """
    ids = set(existing_ids)
    rep = sum(1 for i in ids if key in i)

    def _candidate(n: int) -> str:
        return f"{source}:{key}" + (f"_{n}" if n != 0 else "")

    new_id = _candidate(rep)
    while new_id in ids:
        rep += 1
        new_id = _candidate(rep)
    return new_id, rep


class CollectionFactory:
    """Builds uniquely named collections and appends them to the context's list."""

    def __init__(self, context: ImportContext) -> None:
        self._context = context

    def add(
        self,
        key: str,
        name: str,
        source: str,
        data: Sequence[DataSeries],
        date_time: Optional[datetime] = None,
        interval: Optional[Interval] = None,
        extra_info: Optional[Dict[str, Any]] = None,
        date_time_start: Optional[datetime] = None,
    ) -> DataCollection:
        collections = self._context.collections
        new_id, rep = unique_collection_id((c.id for c in collections), key, source)
        collection = DataCollection(
            id=new_id,
            name=f"Data from {source}: {name}" + (f" ({rep})" if rep != 0 else ""),
            data=tuple(data),
            date_time=date_time,
            date_time_start=date_time_start,
            interval=interval if interval is not None else DEFAULT_INTERVAL,
            extra_info=extra_info,
        )
        collections.append(collection)
        logger.info("Added collection %s with %d series", collection.id, len(collection.data))

        self._context.notify("success", [COLLECTION_ADDED_MESSAGE])
        step = self._context.current_step
        if step is not None and step < POST_IMPORT_STEP:
            self._context.advance_step(POST_IMPORT_STEP)
        return collection


__all__ = ["COLLECTION_ADDED_MESSAGE", "CollectionFactory", "unique_collection_id"]
