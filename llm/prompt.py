"""
Prompt construction for regulator fault diagnosis.

The prompt constrains output to a single JSON object holding a cause, a
recommendation and a risk level, derived only from the listed anomalies.
"""

from __future__ import annotations

import json
from typing import Sequence

from src.anomaly.schema import Anomaly


def format_anomalies(anomalies: Sequence[Anomaly]) -> str:
    """One line per anomaly, in detection order."""

    return "\n".join(
        f"- {a.metric.value}: value={a.value}, baseline={a.baseline_mean}, "
        f"z_score={a.z_score:.2f}, deviation={a.deviation_percent:.1f}%"
        for a in anomalies
    )


def build_prompt(anomalies: Sequence[Anomaly]) -> str:
    """
    Build a strict JSON-only diagnosis prompt for the local model.
    """

    instructions = {
        "task": "Diagnose the most likely gas pressure regulator fault from the anomalies.",
        "constraints": [
            "Return a single JSON object only.",
            "Do NOT include any text outside JSON.",
            "Do NOT invent measurements beyond the anomaly data.",
            "riskLevel must be one of high, medium, low.",
        ],
        "schema": {
            "cause": "string",
            "recommendation": "string",
            "riskLevel": "high/medium/low",
        },
    }

    prompt = (
        "You are a gas pressure regulator fault diagnosis expert.\n"
        f"INSTRUCTIONS: {json.dumps(instructions, sort_keys=True)}\n"
        f"ANOMALIES:\n{format_anomalies(anomalies)}\n"
        "RETURN_JSON_ONLY:"
    )

    return prompt
