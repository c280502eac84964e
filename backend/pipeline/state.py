"""
State threaded through the detection pipeline.

Each stage receives a PipelineState and returns an outcome carrying a new
(or, when the stage is skipped, the same) state. States are never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from backend.alerts.schema import Alert
from backend.analysis.schema import RootCauseResult
from backend.notify.broadcaster import BroadcastReport
from src.anomaly.schema import AnomalyResult
from src.data.schema import Reading


class Stage(str, Enum):
    """Pipeline stages, in execution order."""

    DETECT = "detect"
    ANALYZE = "analyze"
    ALERT = "alert"
    PUSH = "push"


class PipelineState(BaseModel):
    """
    Snapshot of one pipeline run.

    Fields:
    - device_id / reading: run input
    - anomaly_result: set by detect
    - root_cause: set by analyze (anomalous readings only)
    - alert: set by alert generation (anomalous readings only)
    - broadcast: delivery report set by push
    - error / failed_stage: the stage failure of this run, if any
    """

    model_config = ConfigDict(frozen=True)

    device_id: str
    reading: Reading
    anomaly_result: Optional[AnomalyResult] = None
    root_cause: Optional[RootCauseResult] = None
    alert: Optional[Alert] = None
    broadcast: Optional[BroadcastReport] = None
    error: Optional[str] = None
    failed_stage: Optional[Stage] = None

    @property
    def is_anomaly(self) -> bool:
        return self.anomaly_result is not None and self.anomaly_result.is_anomaly


@dataclass(frozen=True)
class Ok:
    """Stage completed; skipped is True when the stage short-circuited."""

    stage: Stage
    state: PipelineState
    skipped: bool = False


@dataclass(frozen=True)
class Failed:
    """Stage raised; state carries the error description."""

    stage: Stage
    state: PipelineState
    error: Exception


StageOutcome = Union[Ok, Failed]
