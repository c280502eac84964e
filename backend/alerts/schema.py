"""
Schema for composed alerts.

An Alert combines the anomalies of one reading, their attributed root cause
and the alert level implied by the anomalies.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from backend.analysis.schema import RootCauseResult
from src.anomaly.schema import AlertLevel, Anomaly


class DeviceStatus(str, Enum):
    """Operational status tracked per device."""

    ACTIVE = "active"
    WARNING = "warning"
    CRITICAL = "critical"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"

    @classmethod
    def from_level(cls, level: AlertLevel) -> "DeviceStatus":
        return cls(AlertLevel(level).value)


class Alert(BaseModel):
    """
    User-facing alert record.

    Fields:
    - id: assigned by the alert store on successful storage
    - device_id: device identifier
    - level: WARNING or CRITICAL, derived from anomalies only
    - message: rendered summary
    - anomalies: anomalous metrics
    - root_cause: attributed cause and recommendation
    - created_at: reading timestamp the alert refers to
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    device_id: str
    level: AlertLevel
    message: str = Field(min_length=1)
    anomalies: List[Anomaly]
    root_cause: RootCauseResult
    created_at: datetime
