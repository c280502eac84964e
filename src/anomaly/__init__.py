"""
Anomaly module: Baseline-relative Z-score detection.

Implements reference baselines, the Z-score detector, the alert level policy
and the detection engine.
"""

from .baselines import BaselineProvider, compute_baseline, compute_metric_stats
from .cache import BaselineCache, InMemoryTTLCache, RedisBaselineCache
from .detectors import ZScoreDetector, calculate_z_score, deviation_percent
from .engine import AnomalyEngine
from .schema import AlertLevel, Anomaly, AnomalyResult, BaselineStats, MetricStats
from .scoring import AlertLevelPolicy, determine_alert_level, max_zscore

__all__ = [
	"AnomalyEngine",
	"AnomalyResult",
	"Anomaly",
	"AlertLevel",
	"BaselineStats",
	"MetricStats",
	"BaselineProvider",
	"BaselineCache",
	"InMemoryTTLCache",
	"RedisBaselineCache",
	"compute_baseline",
	"compute_metric_stats",
	"ZScoreDetector",
	"calculate_z_score",
	"deviation_percent",
	"AlertLevelPolicy",
	"determine_alert_level",
	"max_zscore",
]
