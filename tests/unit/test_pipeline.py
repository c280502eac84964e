"""
Unit tests for the detection pipeline orchestrator.
"""

from backend.alerts.composer import AlertComposer
from backend.alerts.store import InMemoryAlertStore, InMemoryDeviceRegistry
from backend.analysis.resolver import RootCauseResolver
from backend.notify.broadcaster import Broadcaster
from backend.pipeline.orchestrator import DetectionPipeline
from backend.pipeline.state import Failed, Ok, Stage
from src.anomaly.baselines import BaselineProvider
from src.anomaly.detectors import ZScoreDetector
from src.anomaly.engine import AnomalyEngine
from src.anomaly.scoring import AlertLevelPolicy
from src.core.config import PipelineConfig


class _FakeConnection:
    connected = True

    def __init__(self):
        self.events = []

    def send(self, event, payload):
        self.events.append(event)


class _ExplodingEngine:
    def detect(self, device_id, reading):
        raise RuntimeError("baseline backend down")


class _ExplodingResolver:
    def analyze(self, anomalies):
        raise RuntimeError("resolver crashed")


class _SpyBroadcaster(Broadcaster):
    def __init__(self):
        super().__init__()
        self.alerts = []

    def broadcast(self, alert):
        self.alerts.append(alert)
        return super().broadcast(alert)


def _make_pipeline(detection_config, analysis_config, **overrides):
    policy = AlertLevelPolicy()
    parts = {
        "engine": AnomalyEngine(
            baselines=BaselineProvider(settings=detection_config),
            detector=ZScoreDetector(threshold=3.0),
            policy=policy,
        ),
        "resolver": RootCauseResolver(settings=analysis_config),
        "composer": AlertComposer(sink=InMemoryAlertStore(), status_updater=InMemoryDeviceRegistry(), policy=policy),
        "broadcaster": _SpyBroadcaster(),
        "settings": PipelineConfig(),
    }
    parts.update(overrides)
    return DetectionPipeline(**parts)


def test_normal_reading_short_circuits(detection_config, analysis_config, normal_reading):
    pipeline = _make_pipeline(detection_config, analysis_config)
    outcomes = list(pipeline.stream("REG-001", normal_reading))

    assert [o.stage for o in outcomes] == [Stage.DETECT, Stage.ANALYZE, Stage.ALERT, Stage.PUSH]
    assert all(isinstance(o, Ok) for o in outcomes)
    assert [o.skipped for o in outcomes] == [False, True, True, True]

    detected = outcomes[0].state
    assert outcomes[-1].state is detected
    assert detected.root_cause is None
    assert detected.alert is None
    assert pipeline.broadcaster.alerts == []


def test_anomalous_reading_runs_all_stages(detection_config, analysis_config, outlet_spike_reading):
    pipeline = _make_pipeline(detection_config, analysis_config)
    connection = _FakeConnection()
    pipeline.broadcaster.registry.add("c1", connection)

    state = pipeline.run("REG-001", outlet_spike_reading)

    assert state.is_anomaly
    assert state.root_cause.rule_id == "rule-001"
    assert state.alert.id == 1
    assert state.alert.device_id == "REG-001"
    assert state.broadcast.delivered == ["c1"]
    assert state.error is None
    assert connection.events == ["alert", "device-status"]
    assert len(pipeline.broadcaster.alerts) == 1


def test_detect_failure_continues_by_default(detection_config, analysis_config, normal_reading):
    pipeline = _make_pipeline(detection_config, analysis_config, engine=_ExplodingEngine())
    outcomes = list(pipeline.stream("REG-001", normal_reading))

    assert isinstance(outcomes[0], Failed)
    assert len(outcomes) == 4
    final = outcomes[-1].state
    assert final.failed_stage == Stage.DETECT
    assert final.error == "RuntimeError: baseline backend down"
    assert final.alert is None
    assert pipeline.broadcaster.alerts == []


def test_halt_on_failure_stops_run(detection_config, analysis_config, normal_reading):
    pipeline = _make_pipeline(
        detection_config,
        analysis_config,
        engine=_ExplodingEngine(),
        settings=PipelineConfig(halt_on_failure=True),
    )
    outcomes = list(pipeline.stream("REG-001", normal_reading))

    assert len(outcomes) == 1
    assert isinstance(outcomes[0], Failed)
    assert isinstance(outcomes[0].error, RuntimeError)


def test_analyze_failure_never_broadcasts(detection_config, analysis_config, outlet_spike_reading):
    pipeline = _make_pipeline(detection_config, analysis_config, resolver=_ExplodingResolver())
    state = pipeline.run("REG-001", outlet_spike_reading)

    assert state.is_anomaly
    assert state.failed_stage == Stage.ANALYZE
    assert state.error == "RuntimeError: resolver crashed"
    assert state.alert is None
    assert pipeline.broadcaster.alerts == []


def test_each_stream_is_a_fresh_run(detection_config, analysis_config, outlet_spike_reading):
    pipeline = _make_pipeline(detection_config, analysis_config)
    first = pipeline.run("REG-001", outlet_spike_reading)
    second = pipeline.run("REG-001", outlet_spike_reading)

    assert first.alert.id == 1
    assert second.alert.id == 2


def test_stages_after_analyze_failure_are_skipped(detection_config, analysis_config, outlet_spike_reading):
    pipeline = _make_pipeline(detection_config, analysis_config, resolver=_ExplodingResolver())
    outcomes = list(pipeline.stream("REG-001", outlet_spike_reading))

    assert [type(o) for o in outcomes] == [Ok, Failed, Ok, Ok]
    assert [o.skipped for o in outcomes[2:]] == [True, True]
    assert outcomes[-1].state is outcomes[1].state
