import sys
from pathlib import Path

import numpy as np
import pandas as pd

SRC_DIR = Path(__file__).parent.parent / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from backend.importing import get_array_of_data, get_extra_info
from backend.models import FieldMapping, LoadingState, QueryFrame, QueryResult


def _result(*frames):
    return QueryResult(LoadingState.DONE, tuple(QueryFrame(ref, df) for ref, df in frames))


LONG = pd.DataFrame(
    {
        "time": [3, 1, 2, 1, 2],
        "tag": ["a", "a", "a", "b", "b"],
        "value": [30.0, 10.0, 20.0, 1.0, np.nan],
    }
)


def test_long_frame_keeps_latest_value_by_time():
    data = get_array_of_data(_result(("A", LONG)), "A", FieldMapping())

    assert [(s.id, s.values) for s in data] == [("a", (30.0,)), ("b", (1.0,))]


def test_list_mode_keeps_last_n_values():
    data = get_array_of_data(_result(("A", LONG)), "A", FieldMapping(), is_list_values=True, number_of_values=2)

    assert data[0].values == (20.0, 30.0)
    assert data[1].values == (1.0,)


def test_list_mode_without_limit_keeps_all():
    data = get_array_of_data(_result(("A", LONG)), "A", FieldMapping(), is_list_values=True)

    assert data[0].values == (10.0, 20.0, 30.0)


def test_wide_frame_uses_columns_as_tags():
    wide = pd.DataFrame({"time": [1, 2], "t1": [1.0, 2.0], "t2": ["3", "4"], "label": ["x", "y"]})

    data = get_array_of_data(_result(("A", wide)), "A", FieldMapping())

    assert [(s.id, s.values) for s in data] == [("t1", (2.0,)), ("t2", (4.0,))]


def test_custom_column_names():
    frame = pd.DataFrame({"ts": [1, 2], "sensor": ["s", "s"], "reading": [5.0, 6.0]})
    mapping = FieldMapping(tag_column="sensor", value_column="reading", time_column="ts")

    data = get_array_of_data(_result(("A", frame)), "A", mapping)

    assert [(s.id, s.values) for s in data] == [("s", (6.0,))]


def test_other_queries_and_missing_ref_are_ignored():
    result = _result(("B", LONG))

    assert get_array_of_data(result, "A", FieldMapping()) == []
    assert get_array_of_data(result, None, FieldMapping()) == []


def test_extra_info_collects_named_values():
    frame = pd.DataFrame({"name": ["site", "limit", None], "value": ["north", np.int64(5), 1]})

    info = get_extra_info(_result(("X", frame)), "X", FieldMapping())

    assert info == {"site": "north", "limit": 5}
    assert type(info["limit"]) is int


def test_extra_info_without_columns_is_none():
    frame = pd.DataFrame({"other": [1]})

    assert get_extra_info(_result(("X", frame)), "X", FieldMapping()) is None


def test_rows_without_tag_are_skipped():
    frame = pd.DataFrame({"time": [1, 2, 3], "tag": ["a", None, np.nan], "value": [1.0, 2.0, 3.0]})

    data = get_array_of_data(_result(("A", frame)), "A", FieldMapping(), is_list_values=True)

    assert [(s.id, s.values) for s in data] == [("a", (1.0,))]
