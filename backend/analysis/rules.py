"""
Static fault rule catalog.

Rules are evaluated in ascending priority (1 = highest precedence); the first
rule whose predicate holds over the anomaly set wins. The catalog is sorted
once at construction and never mutated afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence, Tuple

from src.anomaly.schema import Anomaly
from src.data.schema import Metric

logger = logging.getLogger("backend.analysis.rules")

Predicate = Callable[[Sequence[Anomaly]], bool]


@dataclass(frozen=True)
class Rule:
    """A fault signature with its explanation."""

    id: str
    priority: int
    predicate: Predicate
    cause: str
    recommendation: str


@dataclass(frozen=True)
class RuleMatch:
    rule_id: str
    cause: str
    recommendation: str


def _find(anomalies: Sequence[Anomaly], metric: Metric) -> Optional[Anomaly]:
    return next((a for a in anomalies if a.metric == metric), None)


def zscore_above(metric: Metric, limit: float) -> Predicate:
    """Predicate: the metric is anomalous with z-score above limit."""

    def predicate(anomalies: Sequence[Anomaly]) -> bool:
        return any(a.metric == metric and a.z_score > limit for a in anomalies)

    return predicate


def value_above(metric: Metric, limit: float) -> Predicate:
    """Predicate: the metric is anomalous with an observed value above limit."""

    def predicate(anomalies: Sequence[Anomaly]) -> bool:
        return any(a.metric == metric and a.value > limit for a in anomalies)

    return predicate


def all_zscores_above(metrics: Iterable[Metric], limit: float) -> Predicate:
    """Predicate: every listed metric is anomalous with z-score above limit."""

    metrics = tuple(metrics)

    def predicate(anomalies: Sequence[Anomaly]) -> bool:
        found = [_find(anomalies, metric) for metric in metrics]
        return all(a is not None and a.z_score > limit for a in found)

    return predicate


DEFAULT_RULES: Tuple[Rule, ...] = (
    Rule(
        id="rule-001",
        priority=1,
        predicate=zscore_above(Metric.OUTLET_PRESSURE, 4.0),
        cause="Regulator diaphragm may be aged or damaged",
        recommendation="Inspect and replace the diaphragm immediately; stop the device",
    ),
    Rule(
        id="rule-002",
        priority=2,
        predicate=value_above(Metric.TEMPERATURE, 60.0),
        cause="Abnormal device temperature; the valve may be sticking",
        recommendation="Check valve lubrication and clean the valve",
    ),
    Rule(
        id="rule-003",
        priority=3,
        predicate=zscore_above(Metric.INLET_PRESSURE, 4.0),
        cause="Inlet pressure fluctuation; upstream gas supply may be unstable",
        recommendation="Check upstream piping and supply system; contact the gas supplier",
    ),
    Rule(
        id="rule-004",
        priority=4,
        predicate=zscore_above(Metric.FLOW_RATE, 4.0),
        cause="Abnormal flow; possible pipeline leak or sudden demand surge",
        recommendation="Check pipeline integrity and inspect downstream consumers",
    ),
    Rule(
        id="rule-005",
        priority=5,
        predicate=all_zscores_above((Metric.OUTLET_PRESSURE, Metric.TEMPERATURE), 3.0),
        cause="Outlet pressure and temperature abnormal together; regulator failure likely",
        recommendation="Shut down for maintenance and replace the regulator core components",
    ),
)


class RuleCatalog:
    """Immutable, priority-ordered rule list."""

    def __init__(self, rules: Iterable[Rule] = DEFAULT_RULES) -> None:
        # sorted() is stable: equal priorities keep declaration order
        self._rules: Tuple[Rule, ...] = tuple(sorted(rules, key=lambda r: r.priority))

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def match(self, anomalies: Sequence[Anomaly]) -> Optional[RuleMatch]:
        for rule in self._rules:
            try:
                matched = rule.predicate(anomalies)
            except Exception:
                logger.exception("Rule %s predicate failed; treating as no match", rule.id)
                continue
            if matched:
                return RuleMatch(rule_id=rule.id, cause=rule.cause, recommendation=rule.recommendation)
        return None
