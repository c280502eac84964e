"""
Schema for model-generated fault diagnoses.

Free-text fields are normalized rather than rejected: blank values count as
missing and overly long answers are truncated.
"""

from __future__ import annotations

from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_TEXT_LENGTH = 500
RISK_LEVELS = ("high", "medium", "low")


class Reasoner(Protocol):
    """Text reasoning service."""

    def complete(self, prompt: str) -> str:
        ...


class Diagnosis(BaseModel):
    """
    Structured diagnosis parsed from model output.

    Fields:
    - cause: probable fault cause
    - recommendation: suggested handling
    - risk_level: high / medium / low (accepted as "riskLevel" in model output);
      any other value is dropped
    """

    model_config = ConfigDict(populate_by_name=True)

    cause: Optional[str] = None
    recommendation: Optional[str] = None
    risk_level: Optional[str] = Field(None, alias="riskLevel")

    @field_validator("cause", "recommendation")
    @classmethod
    def clip_text(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            return None
        if len(v) > MAX_TEXT_LENGTH:
            return v[: MAX_TEXT_LENGTH - 3].rstrip() + "..."
        return v

    @field_validator("risk_level")
    @classmethod
    def normalize_risk(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().lower()
        return v if v in RISK_LEVELS else None
