"""
Range validation for incoming readings.

Readings whose metrics fall outside physical plausibility limits are rejected
at ingestion, before they reach the detection pipeline.
"""

import logging
import math
from typing import List, Mapping, Optional

from pydantic import BaseModel, Field

from src.core.exceptions import DataValidationError
from src.data.schema import METRICS, VALIDATION_RULES, Metric, Reading, ValidRange

logger = logging.getLogger(__name__)


class FieldError(BaseModel):
    """A single out-of-range metric."""

    field: Metric
    value: float
    message: str


class ValidationResult(BaseModel):
    """Outcome of validating one reading."""

    is_valid: bool
    errors: List[FieldError] = Field(default_factory=list)


def validate_reading(
    reading: Reading,
    rules: Optional[Mapping[Metric, ValidRange]] = None,
) -> ValidationResult:
    """
    Check every metric of a reading against its valid range.
    
    Args:
        reading: Reading to validate
        rules: Optional override of VALIDATION_RULES
    
    Returns:
        ValidationResult listing every out-of-range metric
    """
    rules = rules if rules is not None else VALIDATION_RULES
    errors: List[FieldError] = []

    for metric in METRICS:
        value = reading.value_of(metric)
        if not math.isfinite(value):
            errors.append(FieldError(field=metric, value=value, message="Value must be a finite number"))
            continue
        bounds = rules.get(metric)
        if bounds is None:
            continue
        if value < bounds.min or value > bounds.max:
            errors.append(
                FieldError(
                    field=metric,
                    value=value,
                    message=f"Value must be between {bounds.min} and {bounds.max} {bounds.unit}",
                )
            )

    return ValidationResult(is_valid=not errors, errors=errors)


def ensure_valid(reading: Reading) -> Reading:
    """
    Validate a reading and raise on failure.
    
    Raises:
        DataValidationError: If any metric is out of range
    """
    result = validate_reading(reading)
    if not result.is_valid:
        details = ", ".join(f"{e.field.value}: {e.message}" for e in result.errors)
        logger.warning("Rejected reading for device %s: %s", reading.device_id, details)
        raise DataValidationError(f"Validation failed: {details}")
    return reading
