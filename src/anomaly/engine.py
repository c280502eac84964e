"""
Baseline-relative anomaly detection engine.

Scores a Reading against its device baseline, metric by metric, and returns an
AnomalyResult whose severity follows the alert level policy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from src.core.config import config
from src.data.schema import METRICS, Reading

from .baselines import BaselineProvider
from .detectors import ZScoreDetector
from .schema import Anomaly, AnomalyResult
from .scoring import AlertLevelPolicy

logger = logging.getLogger(__name__)


@dataclass
class AnomalyEngine:
    """
    Deterministic anomaly detection engine.

    Notes:
    - Performs exactly one baseline lookup per reading and no other I/O.
    - Metrics are evaluated in fixed order (inlet, outlet, temperature, flow).
    - Identical inputs and baselines always produce identical results.
    """

    baselines: BaselineProvider = field(default_factory=BaselineProvider)
    detector: Optional[ZScoreDetector] = None
    policy: Optional[AlertLevelPolicy] = None

    def __post_init__(self) -> None:
        if self.detector is None:
            self.detector = ZScoreDetector(threshold=config.detection.zscore_threshold)
        if self.policy is None:
            self.policy = AlertLevelPolicy.from_config(config.alerts)

    def detect(self, device_id: str, reading: Reading) -> AnomalyResult:
        baseline = self.baselines.get_baseline(device_id)
        anomalies: List[Anomaly] = []

        for metric in METRICS:
            observed = reading.value_of(metric)
            stats = baseline.stats_for(metric)
            anomaly = self.detector.evaluate(metric, observed, stats)
            logger.debug(
                "Device %s %s: value=%s baseline=%s±%s z=%.2f (threshold %s)",
                device_id,
                metric.value,
                observed,
                stats.mean,
                stats.std,
                self.detector.compute(observed, stats),
                self.detector.threshold,
            )
            if anomaly is not None:
                anomalies.append(anomaly)

        result = AnomalyResult(
            device_id=device_id,
            timestamp=reading.timestamp,
            is_anomaly=bool(anomalies),
            anomalies=anomalies,
            severity=self.policy.level_for(anomalies),
        )

        if result.is_anomaly:
            logger.warning(
                "Anomaly detected for device %s: %d metric(s) above threshold (%s)",
                device_id,
                len(anomalies),
                ", ".join(f"{a.metric.value} z={a.z_score:.2f}" for a in anomalies),
            )
        else:
            logger.info("No anomaly detected for device %s", device_id)

        return result
