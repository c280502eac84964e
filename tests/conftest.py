"""
Pytest configuration and shared fixtures.

Provides test configuration instances and sample readings for unit and
integration tests.
"""

from datetime import datetime, timezone
from typing import Dict, List

import pytest

from src.anomaly.schema import Anomaly
from src.core.config import AlertPolicyConfig, AnalysisConfig, DetectionConfig, PipelineConfig
from src.data.schema import Metric, Reading

T0 = datetime(2025, 2, 7, 10, 0, tzinfo=timezone.utc)

NORMAL_VALUES: Dict[str, float] = {
    "inlet_pressure": 0.3,
    "outlet_pressure": 2.5,
    "temperature": 23.0,
    "flow_rate": 500.0,
}


def make_reading(device_id: str = "REG-001", timestamp: datetime = T0, **overrides) -> Reading:
    """Reading at the reference operating point, with optional metric overrides."""
    values = dict(NORMAL_VALUES)
    values.update(overrides)
    return Reading(device_id=device_id, timestamp=timestamp, **values)


def make_anomaly(metric: Metric, z_score: float, value: float = 1.0, baseline_mean: float = 1.0) -> Anomaly:
    return Anomaly(
        metric=metric,
        value=value,
        baseline_mean=baseline_mean,
        z_score=z_score,
        deviation_percent=0.0,
    )


@pytest.fixture
def detection_config() -> DetectionConfig:
    """
    Detection settings pinned to the defaults.

    Used instead of the environment-based config so tests run consistently
    regardless of .env settings.
    """
    return DetectionConfig()


@pytest.fixture
def history_config() -> DetectionConfig:
    return DetectionConfig(baseline_mode="history", baseline_sample_size=100)


@pytest.fixture
def analysis_config() -> AnalysisConfig:
    return AnalysisConfig(reasoning_timeout_seconds=1.0, reasoning_workers=2)


@pytest.fixture
def alert_policy_config() -> AlertPolicyConfig:
    return AlertPolicyConfig()


@pytest.fixture
def pipeline_config() -> PipelineConfig:
    return PipelineConfig()


@pytest.fixture
def reading_factory():
    """Factory building readings around the reference operating point."""
    return make_reading


@pytest.fixture
def anomaly_factory():
    return make_anomaly


@pytest.fixture
def normal_reading() -> Reading:
    return make_reading()


@pytest.fixture
def outlet_spike_reading() -> Reading:
    """Outlet pressure at z=5.0 against the reference baseline (2.5 ± 0.1)."""
    return make_reading(outlet_pressure=3.0)


@pytest.fixture
def sample_history() -> List[Reading]:
    """Ten readings of one device, one minute apart."""
    return [
        make_reading(
            timestamp=T0.replace(minute=i),
            inlet_pressure=0.3 + 0.01 * (i % 3),
            outlet_pressure=2.5 + 0.05 * (i % 2),
        )
        for i in range(10)
    ]


def pytest_configure(config):
    """
    Pytest hook for custom configuration.

    Registers custom markers used throughout tests.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (deferred CI)"
    )
