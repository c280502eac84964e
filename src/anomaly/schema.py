"""
Schema definitions for baseline-relative anomaly detection.

All anomaly outputs are deterministic and explainable. Each anomaly references
its observed value, baseline mean, z-score and relative deviation.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.data.schema import Metric


class AlertLevel(str, Enum):
    """Alert levels, ordered by urgency."""

    WARNING = "warning"
    CRITICAL = "critical"


class MetricStats(BaseModel):
    """
    Reference statistics for a single metric.

    Fields:
    - mean: central tendency
    - std: dispersion (0 is valid and never produces an anomaly)
    """

    model_config = ConfigDict(frozen=True)

    mean: float
    std: float = Field(ge=0.0)


class BaselineStats(BaseModel):
    """
    Per-device baseline.

    Fields:
    - device_id: device the baseline belongs to
    - inlet_pressure/outlet_pressure/temperature/flow_rate: per-metric stats
    - sample_size: number of readings used (0 for the static default)
    - updated_at: when the baseline was produced
    - source: "default" for configured baselines, "computed" for recomputed ones
    """

    model_config = ConfigDict(frozen=True)

    device_id: str
    inlet_pressure: MetricStats
    outlet_pressure: MetricStats
    temperature: MetricStats
    flow_rate: MetricStats
    sample_size: int = Field(0, ge=0)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: str = "default"

    def stats_for(self, metric: Metric) -> MetricStats:
        return getattr(self, Metric(metric).value)


class Anomaly(BaseModel):
    """
    A single metric whose z-score exceeded the detection threshold.

    Fields:
    - metric: metric name
    - value: observed value
    - baseline_mean: baseline reference mean
    - z_score: |value - mean| / std
    - deviation_percent: (value - mean) / mean * 100
    """

    model_config = ConfigDict(frozen=True)

    metric: Metric
    value: float
    baseline_mean: float
    z_score: float = Field(ge=0.0)
    deviation_percent: float


class AnomalyResult(BaseModel):
    """
    Detection outcome for one reading.

    Fields:
    - device_id: device identifier
    - timestamp: reading timestamp
    - is_anomaly: True iff anomalies is non-empty
    - anomalies: anomalous metrics in detection order
    - severity: alert level implied by the anomalies
    """

    model_config = ConfigDict(frozen=True)

    device_id: str
    timestamp: datetime
    is_anomaly: bool
    anomalies: List[Anomaly] = Field(default_factory=list)
    severity: AlertLevel = AlertLevel.WARNING

    @model_validator(mode="after")
    def _check_consistency(self) -> "AnomalyResult":
        if self.is_anomaly != bool(self.anomalies):
            raise ValueError("is_anomaly must be True exactly when anomalies are present")
        return self
