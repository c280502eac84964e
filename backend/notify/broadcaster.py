"""
Alert fan-out to connected observers.

Delivery is best-effort and at-most-once per observer: a closed or failing
connection is skipped, recorded, and removed from the registry once the
broadcast pass completes. One failing observer never prevents delivery to
the others.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from threading import Lock
from typing import Any, Dict, List, Optional, Protocol, Tuple

from pydantic import BaseModel, Field

from backend.alerts.schema import Alert
from src.anomaly.schema import AlertLevel
from src.data.schema import Reading

logger = logging.getLogger("backend.notify")


class MessageType(str, Enum):
    """Event names pushed to observers."""

    SENSOR_DATA = "sensor-data"
    ALERT = "alert"
    CONNECTION = "connection"
    DEVICE_STATUS = "device-status"


class Connection(Protocol):
    """A live observer handle provided by the socket layer."""

    @property
    def connected(self) -> bool:
        ...

    def send(self, event: str, payload: Dict[str, Any]) -> None:
        ...


class BroadcastReport(BaseModel):
    """Outcome of one broadcast pass."""

    event: MessageType
    delivered: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)


class ObserverRegistry:
    """
    Concurrency-safe mapping of client id to connection.

    Broadcasts iterate over a snapshot so registrations made during a pass
    never invalidate the iteration.
    """

    def __init__(self) -> None:
        self._connections: Dict[str, Connection] = {}
        self._lock = Lock()

    def add(self, client_id: str, connection: Connection) -> None:
        with self._lock:
            self._connections[client_id] = connection

    def remove(self, client_id: str) -> bool:
        with self._lock:
            return self._connections.pop(client_id, None) is not None

    def remove_if_same(self, client_id: str, connection: Connection) -> bool:
        """Remove an entry only if it still holds the given connection."""
        with self._lock:
            if self._connections.get(client_id) is connection:
                del self._connections[client_id]
                return True
            return False

    def snapshot(self) -> List[Tuple[str, Connection]]:
        with self._lock:
            return list(self._connections.items())

    def client_ids(self) -> List[str]:
        with self._lock:
            return list(self._connections)

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)


class Broadcaster:
    """
    Notification fan-out.

    The registry is injected so the socket layer and the pipeline share it
    without global state.
    """

    def __init__(self, registry: Optional[ObserverRegistry] = None) -> None:
        self.registry = registry if registry is not None else ObserverRegistry()

    def connect(self, client_id: str, connection: Connection) -> None:
        self.registry.add(client_id, connection)
        logger.info("Client connected: %s. Total clients: %d", client_id, len(self.registry))
        payload = self._message(
            MessageType.CONNECTION,
            {"clientId": client_id, "connectedAt": datetime.now(timezone.utc).isoformat()},
        )
        try:
            connection.send(MessageType.CONNECTION.value, payload)
        except Exception as exc:
            logger.warning("Failed to acknowledge client %s: %s", client_id, exc)
            self.registry.remove_if_same(client_id, connection)

    def disconnect(self, client_id: str) -> None:
        self.registry.remove(client_id)
        logger.info("Client disconnected: %s. Total clients: %d", client_id, len(self.registry))

    def connected_count(self) -> int:
        return len(self.registry)

    def broadcast(self, alert: Alert) -> BroadcastReport:
        """
        Push an alert to every observer, then announce the device status.

        Never raises; failures are reported and pruned.
        """
        logger.info(
            "Broadcasting %s alert for device %s to %d clients",
            alert.level.value,
            alert.device_id,
            len(self.registry),
        )
        report = self._deliver(MessageType.ALERT, alert.model_dump(mode="json"))
        self.broadcast_device_status(alert.device_id, alert.level)
        return report

    def broadcast_device_status(self, device_id: str, level: AlertLevel) -> BroadcastReport:
        data = {
            "deviceId": device_id,
            "status": AlertLevel(level).value,
            "updatedAt": datetime.now(timezone.utc).isoformat(),
        }
        logger.debug("Broadcasting device status %s for %s", data["status"], device_id)
        return self._deliver(MessageType.DEVICE_STATUS, data)

    def broadcast_reading(self, reading: Reading) -> BroadcastReport:
        logger.debug("Broadcasting sensor data for device %s", reading.device_id)
        return self._deliver(MessageType.SENSOR_DATA, reading.model_dump(mode="json"))

    def _deliver(self, event: MessageType, data: Dict[str, Any]) -> BroadcastReport:
        report = BroadcastReport(event=event)
        payload = self._message(event, data)
        failed: List[Tuple[str, Connection]] = []

        for client_id, connection in self.registry.snapshot():
            try:
                if not connection.connected:
                    failed.append((client_id, connection))
                    continue
                connection.send(event.value, payload)
            except Exception as exc:
                logger.error("Failed to send %s to client %s: %s", event.value, client_id, exc)
                failed.append((client_id, connection))
                continue
            report.delivered.append(client_id)

        if failed:
            logger.warning("Removing %d failed connections", len(failed))
            for client_id, connection in failed:
                self.registry.remove_if_same(client_id, connection)
                report.failed.append(client_id)

        return report

    @staticmethod
    def _message(event: MessageType, data: Dict[str, Any]) -> Dict[str, Any]:
        return {"type": event.value, "data": data}
