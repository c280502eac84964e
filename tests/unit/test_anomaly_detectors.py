"""
Unit tests for Z-score detection primitives.
"""

import math

from src.anomaly.detectors import ZScoreDetector, calculate_z_score, deviation_percent
from src.anomaly.schema import MetricStats
from src.data.schema import Metric


def test_calculate_z_score_is_absolute():
    assert calculate_z_score(10.0, 5.0, 2.0) == 2.5
    assert calculate_z_score(2.0, 5.0, 2.0) == 1.5


def test_calculate_z_score_zero_std_never_flags():
    assert calculate_z_score(100.0, 5.0, 0.0) == 0.0


def test_deviation_percent_is_signed():
    assert math.isclose(deviation_percent(2.75, 2.5), 10.0)
    assert math.isclose(deviation_percent(2.25, 2.5), -10.0)


def test_deviation_percent_zero_mean():
    assert deviation_percent(3.0, 0.0) == 0.0


def test_detector_threshold_is_strict():
    detector = ZScoreDetector(threshold=3.0)
    stats = MetricStats(mean=10.0, std=1.0)

    assert detector.evaluate(Metric.FLOW_RATE, 13.0, stats) is None

    anomaly = detector.evaluate(Metric.FLOW_RATE, 13.5, stats)
    assert anomaly is not None
    assert anomaly.metric == Metric.FLOW_RATE
    assert anomaly.value == 13.5
    assert anomaly.baseline_mean == 10.0
    assert math.isclose(anomaly.z_score, 3.5)
    assert math.isclose(anomaly.deviation_percent, 35.0)


def test_detector_flags_low_values():
    detector = ZScoreDetector(threshold=3.0)
    anomaly = detector.evaluate(Metric.INLET_PRESSURE, 0.2, MetricStats(mean=0.3, std=0.02))

    assert anomaly is not None
    assert math.isclose(anomaly.z_score, 5.0)
    assert anomaly.deviation_percent < 0
