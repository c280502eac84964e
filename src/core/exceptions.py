"""
Custom exceptions for Regulator Sentinel.

These exceptions provide clear error semantics across the system.
Use them to distinguish between data issues, reasoning problems, storage
failures and configuration errors.
"""


class AnomalyDetectionError(Exception):
    """Base exception for anomaly detection failures."""
    pass


class NoDataError(AnomalyDetectionError):
    """Raised when a baseline recomputation finds no historical readings."""

    def __init__(self, device_id: str):
        super().__init__(f"No historical readings for device {device_id}")
        self.device_id = device_id


class ModelInferenceError(Exception):
    """Raised when reasoning inference fails (model loading, generation, etc.)."""
    pass


class ReasoningTimeoutError(ModelInferenceError):
    """Raised when the reasoning call exceeds its deadline."""
    pass


class ReasoningParseError(ModelInferenceError):
    """Raised when the reasoning output has no usable diagnosis."""
    pass


class DataValidationError(Exception):
    """Raised when a reading fails range validation."""
    pass


class PersistenceError(Exception):
    """Raised by storage collaborators when a write cannot be completed."""
    pass


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""
    pass
