"""
Alert persistence and device status collaborators.

The composer depends only on the AlertSink and DeviceStatusUpdater protocols.
The in-memory adapters back the bundled server and the tests.
"""

from __future__ import annotations

import itertools
import logging
from datetime import datetime
from threading import Lock
from typing import Dict, List, Optional, Protocol

from src.anomaly.schema import AlertLevel

from .schema import Alert, DeviceStatus

logger = logging.getLogger("backend.alerts.store")


class AlertSink(Protocol):
    """Stores an alert and returns the stored copy (with id)."""

    def insert(self, alert: Alert) -> Alert:
        ...


class DeviceStatusUpdater(Protocol):
    def update_status(self, device_id: str, level: AlertLevel) -> None:
        ...


class InMemoryAlertStore:
    """
    Append-only alert history with sequential ids.

    Query semantics: newest first, optional device/level/time filters,
    limit/offset paging.
    """

    def __init__(self) -> None:
        self._alerts: List[Alert] = []
        self._ids = itertools.count(1)
        self._lock = Lock()

    def insert(self, alert: Alert) -> Alert:
        with self._lock:
            stored = alert.model_copy(update={"id": next(self._ids)})
            self._alerts.append(stored)
        logger.debug("Stored alert %s for device %s", stored.id, stored.device_id)
        return stored

    def get(self, alert_id: int) -> Optional[Alert]:
        with self._lock:
            return next((a for a in self._alerts if a.id == alert_id), None)

    def query(
        self,
        device_id: Optional[str] = None,
        level: Optional[AlertLevel] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Alert]:
        with self._lock:
            alerts = list(self._alerts)

        if device_id:
            alerts = [a for a in alerts if a.device_id == device_id]
        if level:
            alerts = [a for a in alerts if a.level == level]
        if start_time:
            alerts = [a for a in alerts if a.created_at >= start_time]
        if end_time:
            alerts = [a for a in alerts if a.created_at <= end_time]

        alerts.sort(key=lambda a: (a.created_at, a.id or 0), reverse=True)
        return alerts[offset : offset + limit]

    def __len__(self) -> int:
        with self._lock:
            return len(self._alerts)


class InMemoryDeviceRegistry:
    """Latest known status per device."""

    def __init__(self) -> None:
        self._statuses: Dict[str, DeviceStatus] = {}
        self._lock = Lock()

    def update_status(self, device_id: str, level: AlertLevel) -> None:
        status = DeviceStatus.from_level(level)
        with self._lock:
            self._statuses[device_id] = status
        logger.info("Device %s status set to %s", device_id, status.value)

    def status_of(self, device_id: str) -> DeviceStatus:
        with self._lock:
            return self._statuses.get(device_id, DeviceStatus.ACTIVE)
