"""
Alert level policy.

Maps a set of anomalies to an alert level. The same policy drives the
detector's severity and the composed alert's level.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from src.core.config import AlertPolicyConfig, config

from .schema import AlertLevel, Anomaly


@dataclass(frozen=True)
class AlertLevelPolicy:
    """
    CRITICAL if more than critical_anomaly_count metrics are anomalous or the
    largest z-score exceeds critical_zscore, WARNING otherwise.
    """

    critical_anomaly_count: int = 2
    critical_zscore: float = 5.0

    @classmethod
    def from_config(cls, policy: AlertPolicyConfig) -> "AlertLevelPolicy":
        return cls(
            critical_anomaly_count=policy.critical_anomaly_count,
            critical_zscore=policy.critical_zscore,
        )

    def level_for(self, anomalies: Sequence[Anomaly]) -> AlertLevel:
        if not anomalies:
            return AlertLevel.WARNING

        max_zscore = max(a.z_score for a in anomalies)
        if len(anomalies) > self.critical_anomaly_count or max_zscore > self.critical_zscore:
            return AlertLevel.CRITICAL
        return AlertLevel.WARNING


def determine_alert_level(
    anomalies: Sequence[Anomaly], policy: Optional[AlertLevelPolicy] = None
) -> AlertLevel:
    """
    Return the alert level for a set of anomalies.

    An empty set is WARNING.
    """

    policy = policy or AlertLevelPolicy.from_config(config.alerts)
    return policy.level_for(anomalies)


def max_zscore(anomalies: Sequence[Anomaly]) -> float:
    """Largest z-score in the set, 0.0 when empty."""

    return max((a.z_score for a in anomalies), default=0.0)
