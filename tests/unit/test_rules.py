"""
Unit tests for the static fault rule catalog.
"""

from backend.analysis.rules import DEFAULT_RULES, Rule, RuleCatalog
from src.data.schema import Metric


def test_catalog_sorted_by_priority():
    catalog = RuleCatalog(reversed(DEFAULT_RULES))
    assert [r.id for r in catalog.rules] == ["rule-001", "rule-002", "rule-003", "rule-004", "rule-005"]
    assert len(catalog) == 5


def test_outlet_pressure_matches_diaphragm_rule(anomaly_factory):
    match = RuleCatalog().match([anomaly_factory(Metric.OUTLET_PRESSURE, 4.5)])

    assert match is not None
    assert match.rule_id == "rule-001"
    assert "diaphragm" in match.cause


def test_high_temperature_value(anomaly_factory):
    match = RuleCatalog().match([anomaly_factory(Metric.TEMPERATURE, 3.5, value=65.0, baseline_mean=23.0)])
    assert match.rule_id == "rule-002"


def test_highest_priority_wins(anomaly_factory):
    anomalies = [
        anomaly_factory(Metric.INLET_PRESSURE, 4.5),
        anomaly_factory(Metric.OUTLET_PRESSURE, 4.2),
        anomaly_factory(Metric.FLOW_RATE, 6.0),
    ]
    assert RuleCatalog().match(anomalies).rule_id == "rule-001"


def test_combined_outlet_temperature_rule(anomaly_factory):
    anomalies = [
        anomaly_factory(Metric.OUTLET_PRESSURE, 3.5),
        anomaly_factory(Metric.TEMPERATURE, 3.5, value=30.0),
    ]
    assert RuleCatalog().match(anomalies).rule_id == "rule-005"


def test_no_rule_matches_moderate_anomaly(anomaly_factory):
    assert RuleCatalog().match([anomaly_factory(Metric.FLOW_RATE, 3.5)]) is None


def test_equal_priorities_keep_declaration_order(anomaly_factory):
    rules = [
        Rule(id="b", priority=1, predicate=lambda a: True, cause="b", recommendation="b"),
        Rule(id="a", priority=1, predicate=lambda a: True, cause="a", recommendation="a"),
    ]
    assert RuleCatalog(rules).match([anomaly_factory(Metric.FLOW_RATE, 3.5)]).rule_id == "b"


def test_failing_predicate_is_no_match(anomaly_factory):
    def boom(anomalies):
        raise KeyError("missing")

    rules = [
        Rule(id="broken", priority=1, predicate=boom, cause="x", recommendation="x"),
        Rule(id="fallback", priority=2, predicate=lambda a: True, cause="y", recommendation="y"),
    ]
    assert RuleCatalog(rules).match([anomaly_factory(Metric.FLOW_RATE, 3.5)]).rule_id == "fallback"
