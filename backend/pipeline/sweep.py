"""
Multi-device detection sweep.

Runs one pipeline per device concurrently. Each device is an independent unit
of work: an exception in one run is recorded and never stops the others.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field

from src.core.config import config
from src.data.repository import ReadingRepository
from src.data.schema import Reading

from .orchestrator import DetectionPipeline
from .state import PipelineState

logger = logging.getLogger("backend.pipeline.sweep")


class SweepReport(BaseModel):
    """
    Result of a sweep.

    Fields:
    - completed: final state per device
    - failed: error description per device whose run raised
    - skipped: devices without a reading to evaluate
    """

    completed: Dict[str, PipelineState] = Field(default_factory=dict)
    failed: Dict[str, str] = Field(default_factory=dict)
    skipped: List[str] = Field(default_factory=list)

    @property
    def anomalous_devices(self) -> List[str]:
        return sorted(d for d, s in self.completed.items() if s.is_anomaly)


@dataclass
class DetectionSweep:
    """Concurrent per-device pipeline runner."""

    pipeline: DetectionPipeline
    repository: Optional[ReadingRepository] = None
    max_workers: int = field(default_factory=lambda: config.pipeline.sweep_workers)

    def run(self, device_ids: Optional[Iterable[str]] = None) -> SweepReport:
        """
        Evaluate the latest reading of each device.

        Defaults to every active device in the repository.
        """
        if self.repository is None:
            raise ValueError("A reading repository is required to sweep devices")

        device_ids = list(device_ids) if device_ids is not None else self.repository.active_device_ids()
        items: List[Tuple[str, Reading]] = []
        skipped: List[str] = []
        for device_id in device_ids:
            try:
                reading = self.repository.latest(device_id)
            except Exception as exc:
                logger.error("Failed to load latest reading for device %s: %s", device_id, exc)
                skipped.append(device_id)
                continue
            if reading is None:
                skipped.append(device_id)
            else:
                items.append((device_id, reading))

        report = self.run_batch(items)
        report.skipped.extend(skipped)
        return report

    def run_batch(self, items: Iterable[Tuple[str, Reading]]) -> SweepReport:
        items = list(items)
        report = SweepReport()
        logger.info("Starting anomaly detection for %d devices", len(items))

        if not items:
            return report

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="sweep") as executor:
            futures = {
                executor.submit(self.pipeline.run, device_id, reading): device_id
                for device_id, reading in items
            }
            for future in as_completed(futures):
                device_id = futures[future]
                try:
                    report.completed[device_id] = future.result()
                except Exception as exc:
                    logger.error("Failed to detect anomaly for device %s: %s", device_id, exc)
                    report.failed[device_id] = f"{type(exc).__name__}: {exc}"

        logger.info(
            "Completed anomaly detection: %d ok, %d failed",
            len(report.completed),
            len(report.failed),
        )
        return report
