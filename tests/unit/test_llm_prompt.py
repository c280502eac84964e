"""
Unit tests for diagnosis prompt construction.
"""

from llm.prompt import build_prompt, format_anomalies
from src.anomaly.schema import Anomaly
from src.data.schema import Metric


def _make_anomalies():
    return [
        Anomaly(metric=Metric.INLET_PRESSURE, value=0.2, baseline_mean=0.3, z_score=5.0, deviation_percent=-33.3),
        Anomaly(metric=Metric.FLOW_RATE, value=570.0, baseline_mean=500.0, z_score=3.5, deviation_percent=14.0),
    ]


def test_format_anomalies_one_line_each():
    lines = format_anomalies(_make_anomalies()).splitlines()

    assert len(lines) == 2
    assert lines[0].startswith("- inlet_pressure:")
    assert "z_score=5.00" in lines[0]
    assert "deviation=14.0%" in lines[1]


def test_prompt_is_deterministic():
    assert build_prompt(_make_anomalies()) == build_prompt(_make_anomalies())


def test_prompt_requests_json_only():
    prompt = build_prompt(_make_anomalies())

    assert "riskLevel" in prompt
    assert "Return a single JSON object only." in prompt
    assert prompt.endswith("RETURN_JSON_ONLY:")
