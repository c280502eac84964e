"""
Pipeline orchestration exports.
"""

from .orchestrator import DetectionPipeline
from .state import Failed, Ok, PipelineState, Stage, StageOutcome
from .sweep import DetectionSweep, SweepReport

__all__ = [
    "DetectionPipeline",
    "DetectionSweep",
    "SweepReport",
    "PipelineState",
    "Stage",
    "StageOutcome",
    "Ok",
    "Failed",
]
