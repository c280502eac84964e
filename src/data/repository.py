"""
Historical reading access.

The detection core only depends on the ReadingRepository protocol; durable
storage lives outside this repository. InMemoryReadingRepository is the
in-process adapter used by the server and by tests.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from threading import Lock
from typing import Deque, Dict, List, Optional, Protocol

from src.data.schema import Reading

logger = logging.getLogger(__name__)


class ReadingRepository(Protocol):
    """Read access to stored readings."""

    def query_recent(self, device_id: str, n: int) -> List[Reading]:
        """Return up to n readings for a device, newest first."""
        ...

    def latest(self, device_id: str) -> Optional[Reading]:
        ...

    def active_device_ids(self) -> List[str]:
        ...


class InMemoryReadingRepository:
    """
    Bounded per-device reading history.

    Readings are kept in arrival order; queries sort by timestamp so that
    late arrivals still come back newest first.
    """

    def __init__(self, max_per_device: int = 10_000) -> None:
        self.max_per_device = max_per_device
        self._readings: Dict[str, Deque[Reading]] = defaultdict(
            lambda: deque(maxlen=self.max_per_device)
        )
        self._lock = Lock()

    def append(self, reading: Reading) -> Reading:
        with self._lock:
            self._readings[reading.device_id].append(reading)
        logger.debug("Stored reading for device %s", reading.device_id)
        return reading

    def query_recent(self, device_id: str, n: int) -> List[Reading]:
        with self._lock:
            rows = list(self._readings.get(device_id, ()))
        rows.sort(key=lambda r: r.timestamp, reverse=True)
        return rows[:n]

    def latest(self, device_id: str) -> Optional[Reading]:
        recent = self.query_recent(device_id, 1)
        return recent[0] if recent else None

    def active_device_ids(self) -> List[str]:
        with self._lock:
            return sorted(device for device, rows in self._readings.items() if rows)
