"""
Core module: Configuration, logging, and exception handling.
"""

from .config import Config, config
from .exceptions import (
    AnomalyDetectionError,
    ConfigurationError,
    DataValidationError,
    ModelInferenceError,
    NoDataError,
    PersistenceError,
    ReasoningParseError,
    ReasoningTimeoutError,
)

__all__ = [
    "Config",
    "config",
    "AnomalyDetectionError",
    "NoDataError",
    "ModelInferenceError",
    "ReasoningTimeoutError",
    "ReasoningParseError",
    "DataValidationError",
    "PersistenceError",
    "ConfigurationError",
]
