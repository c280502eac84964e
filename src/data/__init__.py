"""
Data module: Reading schema, ingestion validation, and historical access.

    Raw sample (HTTP / scheduler)
        ↓
    Reading (src/data/schema.py)
        ↓
    Range validation (src/data/validation.py)
        ↓
    Reading history (src/data/repository.py) → baseline recomputation
        ↓
    Ready for anomaly detection (src/anomaly)
"""

from src.data.repository import InMemoryReadingRepository, ReadingRepository
from src.data.schema import (
    METRICS,
    VALIDATION_RULES,
    Metric,
    Reading,
    ValidRange,
)
from src.data.validation import (
    FieldError,
    ValidationResult,
    ensure_valid,
    validate_reading,
)

__all__ = [
    # Schema
    "Metric",
    "METRICS",
    "Reading",
    "ValidRange",
    "VALIDATION_RULES",
    
    # Validation
    "validate_reading",
    "ensure_valid",
    "ValidationResult",
    "FieldError",
    
    # History
    "ReadingRepository",
    "InMemoryReadingRepository",
]
