"""
Canonical reading schema for the detection pipeline.

This module defines the standardized representation of a single regulator
reading. All ingestion sources are converted to this schema before baseline
computation or anomaly detection.

Design rationale:
- Four fixed physical metrics per reading
- All timestamps in UTC for consistency
- Immutable once captured
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Metric(str, Enum):
    """
    Physical quantities sampled from a pressure regulator.

    Declaration order is the detection order.
    """
    INLET_PRESSURE = "inlet_pressure"
    OUTLET_PRESSURE = "outlet_pressure"
    TEMPERATURE = "temperature"
    FLOW_RATE = "flow_rate"


METRICS: Tuple[Metric, ...] = tuple(Metric)


class Reading(BaseModel):
    """
    One timestamped multi-metric sample from a device.
    
    Attributes:
        device_id: Identifier of the regulator that produced the sample
        timestamp: UTC datetime when the sample was captured
        inlet_pressure: Inlet pressure (MPa)
        outlet_pressure: Outlet pressure (MPa)
        temperature: Body temperature (degrees Celsius)
        flow_rate: Gas flow rate (m3/h)
    
    Notes:
        - Instances are frozen
        - Naive timestamps are interpreted as UTC
    """

    model_config = ConfigDict(frozen=True)
    
    device_id: str = Field(
        ...,
        description="Device identifier",
        min_length=1,
        max_length=128
    )
    
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="UTC timestamp of the sample"
    )
    
    inlet_pressure: float = Field(..., description="Inlet pressure (MPa)")
    outlet_pressure: float = Field(..., description="Outlet pressure (MPa)")
    temperature: float = Field(..., description="Temperature (C)")
    flow_rate: float = Field(..., description="Flow rate (m3/h)")
    
    @field_validator("timestamp")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Ensure timestamp is timezone-aware UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)
    
    def value_of(self, metric: Metric) -> float:
        """Return the value recorded for a metric."""
        return getattr(self, Metric(metric).value)
    
    def metric_values(self) -> Dict[Metric, float]:
        """Return all metric values in detection order."""
        return {metric: self.value_of(metric) for metric in METRICS}


class ValidRange(BaseModel):
    """Accepted physical range for one metric."""

    model_config = ConfigDict(frozen=True)

    min: float
    max: float
    unit: str


# Physical plausibility limits applied at ingestion
VALIDATION_RULES: Dict[Metric, ValidRange] = {
    Metric.INLET_PRESSURE: ValidRange(min=0.1, max=1.0, unit="MPa"),
    Metric.OUTLET_PRESSURE: ValidRange(min=0.5, max=5.0, unit="MPa"),
    Metric.TEMPERATURE: ValidRange(min=-20.0, max=80.0, unit="C"),
    Metric.FLOW_RATE: ValidRange(min=0.0, max=2000.0, unit="m3/h"),
}
