"""
Alert composition and storage exports.
"""

from .composer import METRIC_LABELS, AlertComposer, render_alert_message
from .schema import Alert, DeviceStatus
from .store import AlertSink, DeviceStatusUpdater, InMemoryAlertStore, InMemoryDeviceRegistry

__all__ = [
    "AlertComposer",
    "render_alert_message",
    "METRIC_LABELS",
    "Alert",
    "DeviceStatus",
    "AlertSink",
    "DeviceStatusUpdater",
    "InMemoryAlertStore",
    "InMemoryDeviceRegistry",
]
