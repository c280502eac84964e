"""
Schema for root-cause attribution results.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AnalysisMethod(str, Enum):
    """How a root cause was resolved."""

    RULE_BASED = "rule-based"
    FALLBACK_REASONING = "fallback-reasoning"


class RootCauseResult(BaseModel):
    """
    Probable root cause for a set of anomalies.

    Fields:
    - cause: textual explanation
    - recommendation: suggested handling
    - confidence: 0.8 for rule matches, 0.6 for parsed reasoning, 0.3 when degraded
    - method: resolution path
    - rule_id: matching rule (rule-based only)
    - risk_level: risk estimate reported by reasoning, when available
    """

    model_config = ConfigDict(frozen=True)

    cause: str
    recommendation: str
    confidence: float = Field(ge=0.0, le=1.0)
    method: AnalysisMethod
    rule_id: Optional[str] = None
    risk_level: Optional[str] = None
