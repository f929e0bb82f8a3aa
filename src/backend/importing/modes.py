from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple

from core.datetime_utils import to_local

from ..models import IMPORT_STEPS, ImportInputs, ImportMode, ModelConfig, WorkflowStep

_REQUIRED_FIELDS = {
    ImportMode.FILE_UPLOAD: ("file",),
    ImportMode.FIXED_TIMESTAMP: ("date_time",),
    ImportMode.TIMESTAMP_RANGE: ("date_time_start", "date_time"),
    ImportMode.EXTERNAL_VARIABLE: ("variable_value",),
    ImportMode.EXTERNAL_QUERY: (),
}


@dataclass(frozen=True)
class ControlState:
    inputs_disabled: bool
    trigger_disabled: bool


def required_fields(mode: ImportMode) -> Tuple[str, ...]:
    """Names of the :class:`ImportInputs` fields ``mode`` needs."""
    return _REQUIRED_FIELDS[mode]


def available_modes(model: Optional[ModelConfig]) -> List[ImportMode]:
    """Modes offered for ``model``; the range mode needs a start variable and range query."""
    modes = [
        ImportMode.FILE_UPLOAD,
        ImportMode.FIXED_TIMESTAMP,
        ImportMode.EXTERNAL_VARIABLE,
        ImportMode.EXTERNAL_QUERY,
    ]
    if model is not None and model.has_range:
        modes.insert(2, ImportMode.TIMESTAMP_RANGE)
    return modes


def inputs_ready(mode: ImportMode, inputs: ImportInputs) -> bool:
    if mode is ImportMode.EXTERNAL_QUERY:
        # no dispatch path; the query follows the dashboard on its own
        return False
    if any(getattr(inputs, name) is None for name in required_fields(mode)):
        return False
    if mode is ImportMode.TIMESTAMP_RANGE:
        # aware and naive picks compare in local time
        return to_local(inputs.date_time_start) < to_local(inputs.date_time)
    return True


def compute_control_state(
    step: Optional[WorkflowStep],
    mode: ImportMode,
    inputs: ImportInputs,
) -> ControlState:
    """Enable/disable state of the import form. Pure; call on every change."""
    inputs_disabled = step is None or step not in IMPORT_STEPS
    trigger_disabled = inputs_disabled or not inputs_ready(mode, inputs)
    return ControlState(inputs_disabled=inputs_disabled, trigger_disabled=trigger_disabled)


__all__ = [
    "ControlState",
    "available_modes",
    "compute_control_state",
    "inputs_ready",
    "required_fields",
]
