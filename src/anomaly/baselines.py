"""
Baseline lookup and recomputation.

The reference baseline is a fixed configuration per device. Recomputation from
recent history is an explicit operation; its results are shared through a
best-effort cache and only served when the provider runs in "history" mode.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from math import sqrt
from threading import Lock
from typing import Dict, Iterable, Optional, Sequence

from pydantic import ValidationError

from src.core.config import DefaultBaselineConfig, DetectionConfig, config
from src.core.exceptions import ConfigurationError, NoDataError
from src.data.repository import ReadingRepository
from src.data.schema import METRICS, Reading

from .cache import BaselineCache
from .schema import BaselineStats, MetricStats

logger = logging.getLogger(__name__)

BASELINE_MODES = ("static", "history")


def compute_metric_stats(values: Sequence[float]) -> MetricStats:
    """
    Population mean/std of a sample.

    An empty sample yields (0, 0) rather than failing.
    """

    if not values:
        return MetricStats(mean=0.0, std=0.0)
    mean = sum(values) / len(values)
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    return MetricStats(mean=mean, std=sqrt(variance))


def compute_baseline(device_id: str, readings: Sequence[Reading]) -> BaselineStats:
    """Per-metric statistics over a set of readings."""

    stats = {
        metric.value: compute_metric_stats([r.value_of(metric) for r in readings])
        for metric in METRICS
    }
    return BaselineStats(
        device_id=device_id,
        sample_size=len(readings),
        updated_at=datetime.now(timezone.utc),
        source="computed",
        **stats,
    )


class BaselineProvider:
    """
    Supplies per-device baselines.

    Notes:
    - get_baseline never raises; the configured reference baseline is the
      last resort for every failure mode.
    - recompute is the only path that surfaces NoDataError.
    - Cache read/write failures are logged and otherwise ignored.
    """

    def __init__(
        self,
        repository: Optional[ReadingRepository] = None,
        cache: Optional[BaselineCache] = None,
        settings: Optional[DetectionConfig] = None,
    ) -> None:
        self.repository = repository
        self.cache = cache
        self.settings = settings or config.detection
        if self.settings.baseline_mode not in BASELINE_MODES:
            raise ConfigurationError(f"Unknown baseline mode: {self.settings.baseline_mode}")
        self._defaults: Dict[str, BaselineStats] = {}
        self._defaults_lock = Lock()

    def get_baseline(self, device_id: str) -> BaselineStats:
        if self.settings.baseline_mode == "static":
            return self.default_baseline(device_id)

        cached = self._read_cache(device_id)
        if cached is not None:
            return cached

        if self.repository is not None:
            try:
                return self.recompute(device_id)
            except NoDataError:
                logger.info("No history for device %s; using reference baseline", device_id)
            except Exception as exc:
                logger.warning("Baseline recomputation failed for device %s: %s", device_id, exc)

        return self.default_baseline(device_id)

    def default_baseline(self, device_id: str) -> BaselineStats:
        with self._defaults_lock:
            baseline = self._defaults.get(device_id)
            if baseline is None:
                reference = self.settings.device_baselines.get(device_id, self.settings.default_baseline)
                baseline = self._from_reference(device_id, reference)
                self._defaults[device_id] = baseline
                logger.debug("Using reference baseline for device %s", device_id)
        return baseline

    def recompute(self, device_id: str) -> BaselineStats:
        """
        Recompute a device baseline from its most recent readings.

        Raises:
            NoDataError: If the device has no stored readings (or no repository
                is configured).
        """
        if self.repository is None:
            raise NoDataError(device_id)

        readings = self.repository.query_recent(device_id, self.settings.baseline_sample_size)
        if not readings:
            raise NoDataError(device_id)

        baseline = compute_baseline(device_id, readings)
        self._write_cache(baseline)
        logger.info("Recomputed baseline for device %s from %d readings", device_id, baseline.sample_size)
        return baseline

    def refresh_all(self, device_ids: Iterable[str]) -> Dict[str, BaselineStats]:
        """Recompute every listed device, skipping the ones that fail."""
        refreshed: Dict[str, BaselineStats] = {}
        device_ids = list(device_ids)
        logger.info("Starting baseline update for %d devices", len(device_ids))

        for device_id in device_ids:
            try:
                refreshed[device_id] = self.recompute(device_id)
            except NoDataError as exc:
                logger.warning("Skipping baseline update: %s", exc)
            except Exception:
                logger.exception("Failed to update baseline for device %s", device_id)

        logger.info("Completed baseline update for %d/%d devices", len(refreshed), len(device_ids))
        return refreshed

    def cache_key(self, device_id: str) -> str:
        return f"{self.settings.baseline_cache_prefix}{device_id}"

    def _read_cache(self, device_id: str) -> Optional[BaselineStats]:
        if self.cache is None:
            return None
        try:
            raw = self.cache.get(self.cache_key(device_id))
        except Exception as exc:
            logger.warning("Baseline cache read failed for device %s: %s", device_id, exc)
            return None
        if raw is None:
            return None
        try:
            return BaselineStats.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding unreadable cached baseline for device %s: %s", device_id, exc)
            return None

    def _write_cache(self, baseline: BaselineStats) -> None:
        if self.cache is None:
            return
        try:
            self.cache.set_with_ttl(
                self.cache_key(baseline.device_id),
                baseline.model_dump_json().encode("utf-8"),
                self.settings.baseline_cache_ttl_seconds,
            )
        except Exception as exc:
            logger.warning("Baseline cache write failed for device %s: %s", baseline.device_id, exc)

    @staticmethod
    def _from_reference(device_id: str, reference: DefaultBaselineConfig) -> BaselineStats:
        stats = {
            metric.value: MetricStats(**getattr(reference, metric.value).model_dump())
            for metric in METRICS
        }
        return BaselineStats(
            device_id=device_id,
            sample_size=0,
            updated_at=datetime.now(timezone.utc),
            source="default",
            **stats,
        )
