import json
import sys
import threading
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).parent.parent / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

import app
from backend.services.logging import get_log_service


@pytest.fixture(autouse=True)
def _keep_hooks(monkeypatch):
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    monkeypatch.setattr(threading, "excepthook", threading.excepthook)
    yield
    # the captured stderr is gone after the test
    get_log_service().set_stream(None)


def test_cli_prints_collections(tmp_path, capsys):
    csv_path = tmp_path / "data.csv"
    csv_path.write_text("timestamp,2024-05-01 08:30\na,1\nb,2\nc,3\n", encoding="utf-8")
    model_path = tmp_path / "model.json"
    model_path.write_text(json.dumps({"id": "m", "tags": [{"id": "c"}, "a"]}), encoding="utf-8")

    code = app.run([str(csv_path), "--model", str(model_path)])

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert len(payload) == 1
    assert payload[0]["id"] == "CSV:data.csv"
    assert [s["id"] for s in payload[0]["data"]] == ["c", "a"]
    assert payload[0]["dateTime"] == "2024-05-01T08:30:00"


def test_cli_reports_empty_import(tmp_path, capsys):
    csv_path = tmp_path / "empty.csv"
    csv_path.write_text("", encoding="utf-8")

    code = app.run([str(csv_path)])

    captured = capsys.readouterr()
    assert code == 1
    assert json.loads(captured.out) == []
    assert "no data" in captured.err


def test_cli_missing_model_file(tmp_path):
    csv_path = tmp_path / "data.csv"
    csv_path.write_text("a,1\n", encoding="utf-8")

    assert app.run([str(csv_path), "--model", str(tmp_path / "none.json")]) == 2


def test_cli_strict_fails_on_skipped_rows(tmp_path, capsys):
    csv_path = tmp_path / "data.csv"
    csv_path.write_text('a,1\nb,"2\nc,3\n', encoding="utf-8")

    lenient = app.run([str(csv_path)])
    strict = app.run([str(csv_path), "--strict"])

    captured = capsys.readouterr()
    assert (lenient, strict) == (app.EXIT_OK, app.EXIT_WARNINGS)
    assert "InvalidQuotes" in captured.err


def test_cli_strict_passes_clean_file(tmp_path):
    csv_path = tmp_path / "data.csv"
    csv_path.write_text("a,1\nb,2\n", encoding="utf-8")

    assert app.run([str(csv_path), "--strict"]) == app.EXIT_OK
