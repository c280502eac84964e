"""
LLM utilities for fallback root-cause reasoning.

Local-only inference helpers and schema definitions.
"""

from .prompt import build_prompt, format_anomalies
from .schema import Diagnosis, Reasoner

__all__ = [
    "build_prompt",
    "format_anomalies",
    "Diagnosis",
    "Reasoner",
]
