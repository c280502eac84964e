"""
Detectors for statistical deviations.

Implements the explainable Z-score method:
- z = |observed - mean| / std
- deviation% = (observed - mean) / mean * 100
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from src.data.schema import Metric

from .schema import Anomaly, MetricStats


def calculate_z_score(value: float, mean: float, std: float) -> float:
    """
    Absolute standardized deviation.

    A zero std yields 0.0, so a constant baseline never flags a metric.
    """

    if std == 0:
        return 0.0
    return abs((value - mean) / std)


def deviation_percent(value: float, mean: float) -> float:
    """
    Signed deviation from the mean, in percent.

    A zero mean yields 0.0 instead of an infinite or NaN percentage.
    """

    if mean == 0:
        return 0.0
    return (value - mean) / mean * 100.0


@dataclass(frozen=True)
class ZScoreDetector:
    """
    Z-score detector.

    A metric is anomalous when its z-score is strictly greater than threshold.
    """

    threshold: float = 3.0

    def compute(self, observed: float, baseline: MetricStats) -> float:
        return calculate_z_score(observed, baseline.mean, baseline.std)

    def evaluate(self, metric: Metric, observed: float, baseline: MetricStats) -> Optional[Anomaly]:
        zscore = self.compute(observed, baseline)
        if zscore <= self.threshold:
            return None
        return Anomaly(
            metric=metric,
            value=observed,
            baseline_mean=baseline.mean,
            z_score=zscore,
            deviation_percent=deviation_percent(observed, baseline.mean),
        )
