import os
import sys
from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest

SRC_DIR = Path(__file__).parent.parent / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QCoreApplication, QSettings

from backend.datasources import VariableStore
from backend.importing import ImportContext, ReconcileOutcome
from backend.models import (
    CsvFile,
    ImportMode,
    LoadingState,
    ModelConfig,
    QueryFrame,
    QueryResult,
    WorkflowStep,
)
from core.settings_manager import SettingsManager
from frontend.models.notification_model import NotificationModel
from frontend.models.workflow_model import WorkflowModel
from frontend.viewmodels.import_viewmodel import ImportViewModel

T = datetime(2024, 5, 1, 8, 30)
MODEL = ModelConfig(id="m", query_id="A", var_time="time")


@pytest.fixture(scope="module")
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


class Env:
    def __init__(self, step=WorkflowStep.IMPORT_DATA, settings=None):
        self.notifications = NotificationModel()
        self.context = ImportContext(step=step, notify=self.notifications.publish)
        self.workflow = WorkflowModel(self.context)
        self.variables = VariableStore()
        self.vm = ImportViewModel(self.workflow, self.variables, settings=settings)
        self.states = []
        self.collections = []
        self.stale = []
        self.vm.control_state_changed.connect(lambda inputs, trigger: self.states.append((inputs, trigger)))
        self.vm.collections_changed.connect(self.collections.append)
        self.vm.stale_result_discarded.connect(lambda rid, key: self.stale.append((rid, key)))


@pytest.fixture
def env(qapp):
    return Env()


def _done():
    frame = pd.DataFrame({"time": [1, 2], "tag": ["t1", "t2"], "value": [1.0, 2.0]})
    return QueryResult(LoadingState.DONE, (QueryFrame("A", frame),))


def test_trigger_enables_once_inputs_are_complete(env):
    env.vm.set_model(MODEL)
    assert env.vm.control_state.trigger_disabled

    env.vm.set_date_time(T)

    assert env.states[-1] == (False, False)
    assert not env.vm.control_state.trigger_disabled


def test_step_change_recomputes_controls(qapp):
    env = Env(step=WorkflowStep.SELECT_MODEL)
    env.vm.set_model(MODEL)
    env.vm.set_date_time(T)
    assert env.states[-1] == (True, True)

    env.workflow.advance_step(WorkflowStep.IMPORT_DATA)

    assert env.states[-1] == (False, False)


def test_add_data_is_ignored_while_disabled(env):
    env.vm.set_model(MODEL)

    assert env.vm.add_data() is None
    assert env.variables.history == []


def test_fixed_timestamp_round_trip(env):
    busy = []
    steps = []
    env.vm.busy_changed.connect(busy.append)
    env.workflow.step_changed.connect(steps.append)
    env.vm.set_model(MODEL)
    env.vm.set_date_time(T)

    request = env.vm.add_data()

    assert request is not None
    assert env.vm.busy
    assert env.variables.history[0].request_id == request.request_id

    outcome = env.vm.on_query_result(_done())

    assert outcome is ReconcileOutcome.ADDED
    assert busy == [True, False]
    assert len(env.collections) == 1
    assert len(env.collections[0][0].data) == 2
    assert steps == [int(WorkflowStep.MODIFY_DATA)]
    assert [n.messages for n in env.notifications.items("success")] == [("Data collection added",)]


def test_stale_result_is_signalled(env):
    env.vm.set_model(MODEL)
    env.vm.set_date_time(T)
    request = env.vm.add_data()
    env.vm.set_date_time(datetime(2024, 5, 2))

    outcome = env.vm.on_query_result(_done())

    assert outcome is ReconcileOutcome.STALE
    assert env.stale == [(request.request_id, T)]
    assert env.collections == []


def test_file_upload_failure_is_published(env, tmp_path):
    published = []
    env.notifications.published.connect(lambda kind, msgs: published.append((kind, msgs)))
    env.vm.set_model(MODEL)
    env.vm.set_mode(ImportMode.FILE_UPLOAD)
    env.vm.set_file(CsvFile("gone.csv", path=str(tmp_path / "gone.csv")))

    assert env.vm.add_data() is None
    assert published and published[-1][0] == "error"


def test_file_upload_adds_collection(env):
    env.vm.set_model(MODEL)
    env.vm.set_mode(ImportMode.FILE_UPLOAD)
    env.vm.set_file(CsvFile("data.csv", text="t1,1\nt2,2\n"))

    env.vm.add_data()

    assert [c.id for c in env.vm.collections] == ["CSV:data.csv"]
    assert len(env.collections) == 1


def test_range_mode_dropped_for_models_without_range(env):
    ranged = ModelConfig(id="r", query_id="A", query_range_id="B", var_time_start="start")
    modes = []
    env.vm.modes_changed.connect(modes.append)
    env.vm.set_model(ranged)
    env.vm.set_mode(ImportMode.TIMESTAMP_RANGE)

    env.vm.set_model(MODEL)

    assert env.vm.mode is ImportMode.FIXED_TIMESTAMP
    assert "timestamp_range" in modes[0]
    assert "timestamp_range" not in modes[-1]


def test_mode_is_restored_from_settings(qapp, tmp_path):
    settings = SettingsManager(settings=QSettings(str(tmp_path / "s.ini"), QSettings.Format.IniFormat))
    Env(settings=settings).vm.set_mode(ImportMode.EXTERNAL_VARIABLE)

    env = Env(settings=settings)

    assert env.vm.mode is ImportMode.EXTERNAL_VARIABLE
