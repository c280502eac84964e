"""
Detection pipeline orchestrator.

Fixed linear stages with conditional skip:

    detect -> analyze -> alert -> push

- detect always runs.
- analyze and alert only run for anomalous readings.
- push only runs when an alert was produced.

A failing stage is recorded (never retried). Whether the run continues after
a failure is the explicit halt_on_failure policy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterator, Tuple

from backend.alerts.composer import AlertComposer
from backend.analysis.resolver import RootCauseResolver
from backend.notify.broadcaster import Broadcaster
from src.anomaly.engine import AnomalyEngine
from src.core.config import PipelineConfig, config
from src.data.schema import Reading

from .state import Failed, Ok, PipelineState, Stage, StageOutcome

logger = logging.getLogger("backend.pipeline")

StageStep = Callable[[PipelineState], PipelineState]


@dataclass
class DetectionPipeline:
    """
    Wires detection, root-cause analysis, alert composition and fan-out.

    All collaborators are injected; the pipeline holds no per-run state.
    """

    engine: AnomalyEngine
    resolver: RootCauseResolver
    composer: AlertComposer
    broadcaster: Broadcaster
    settings: PipelineConfig = field(default_factory=lambda: config.pipeline)

    def run(self, device_id: str, reading: Reading) -> PipelineState:
        """Execute every stage and return the final state."""
        logger.info("Executing detection pipeline for device %s", device_id)
        state = PipelineState(device_id=device_id, reading=reading)
        for outcome in self.stream(device_id, reading):
            state = outcome.state

        logger.info(
            "Pipeline completed for device %s. Anomaly: %s%s",
            device_id,
            state.is_anomaly,
            f" (failed at {state.failed_stage.value}: {state.error})" if state.failed_stage else "",
        )
        return state

    def stream(self, device_id: str, reading: Reading) -> Iterator[StageOutcome]:
        """
        Yield one outcome per executed stage.

        The sequence is finite and each call starts a fresh run.
        """
        state = PipelineState(device_id=device_id, reading=reading)

        for stage, step in self._stages():
            outcome = self._run_stage(stage, step, state)
            yield outcome
            state = outcome.state
            if isinstance(outcome, Failed) and self.settings.halt_on_failure:
                logger.warning("Halting pipeline for device %s after %s failure", device_id, stage.value)
                return

    def _stages(self) -> Tuple[Tuple[Stage, StageStep], ...]:
        return (
            (Stage.DETECT, self._detect),
            (Stage.ANALYZE, self._analyze),
            (Stage.ALERT, self._alert),
            (Stage.PUSH, self._push),
        )

    def _run_stage(self, stage: Stage, step: StageStep, state: PipelineState) -> StageOutcome:
        try:
            updated = step(state)
        except Exception as exc:
            logger.exception("[%s] Stage failed for device %s", stage.value, state.device_id)
            failed_state = state.model_copy(update={"error": f"{type(exc).__name__}: {exc}", "failed_stage": stage})
            return Failed(stage=stage, state=failed_state, error=exc)
        return Ok(stage=stage, state=updated, skipped=updated is state)

    def _detect(self, state: PipelineState) -> PipelineState:
        anomaly_result = self.engine.detect(state.device_id, state.reading)
        logger.info(
            "[detect] Anomaly: %s, anomalies: %d",
            anomaly_result.is_anomaly,
            len(anomaly_result.anomalies),
        )
        return state.model_copy(update={"anomaly_result": anomaly_result})

    def _analyze(self, state: PipelineState) -> PipelineState:
        if not state.is_anomaly:
            logger.debug("[analyze] No anomaly detected, skipping analysis")
            return state

        root_cause = self.resolver.analyze(state.anomaly_result.anomalies)
        logger.info("[analyze] Method: %s, confidence: %s", root_cause.method.value, root_cause.confidence)
        return state.model_copy(update={"root_cause": root_cause})

    def _alert(self, state: PipelineState) -> PipelineState:
        if not state.is_anomaly:
            logger.debug("[alert] No anomaly detected, skipping alert generation")
            return state
        if state.root_cause is None and state.error is not None:
            logger.warning("[alert] Skipping alert generation after %s failure", state.failed_stage.value)
            return state
        if state.root_cause is None:
            raise ValueError("Anomalous state reached alert generation without a root cause")

        alert = self.composer.compose(state.device_id, state.anomaly_result, state.root_cause)
        logger.info("[alert] Alert generated with level %s", alert.level.value)
        return state.model_copy(update={"alert": alert})

    def _push(self, state: PipelineState) -> PipelineState:
        if state.alert is None:
            logger.debug("[push] No alert to push")
            return state

        report = self.broadcaster.broadcast(state.alert)
        logger.info(
            "[push] Alert delivered to %d clients (%d failed)",
            len(report.delivered),
            len(report.failed),
        )
        return state.model_copy(update={"broadcast": report})
