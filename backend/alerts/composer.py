"""
Alert composition.

Turns an anomalous detection result plus its root cause into an Alert, hands
it to the alert store and updates the device status. Storage problems never
invalidate the in-memory alert.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from backend.analysis.schema import RootCauseResult
from src.anomaly.schema import Anomaly, AnomalyResult
from src.anomaly.scoring import AlertLevelPolicy, determine_alert_level
from src.data.schema import Metric

from .schema import Alert
from .store import AlertSink, DeviceStatusUpdater

logger = logging.getLogger("backend.alerts")

METRIC_LABELS: Dict[Metric, str] = {
    Metric.INLET_PRESSURE: "Inlet pressure",
    Metric.OUTLET_PRESSURE: "Outlet pressure",
    Metric.TEMPERATURE: "Temperature",
    Metric.FLOW_RATE: "Flow rate",
}


def render_alert_message(anomalies: Sequence[Anomaly], root_cause: RootCauseResult) -> str:
    """
    Deterministic alert text: labelled metrics with z-scores, then the cause.
    """
    descriptions = [
        f"{METRIC_LABELS.get(a.metric, a.metric.value)} anomaly (Z-Score: {a.z_score:.2f})"
        for a in anomalies
    ]
    return f"Detected {', '.join(descriptions)}. {root_cause.cause}"


@dataclass
class AlertComposer:
    """
    Alert composer.

    - Level comes from the alert level policy only.
    - The stored copy (with id) replaces the in-memory alert when the sink succeeds.
    - Device status is updated only after a successful store.
    """

    sink: Optional[AlertSink] = None
    status_updater: Optional[DeviceStatusUpdater] = None
    policy: Optional[AlertLevelPolicy] = None

    def compose(self, device_id: str, anomaly_result: AnomalyResult, root_cause: RootCauseResult) -> Alert:
        if not anomaly_result.anomalies:
            raise ValueError("Cannot compose an alert without anomalies")

        level = determine_alert_level(anomaly_result.anomalies, self.policy)
        alert = Alert(
            device_id=device_id,
            level=level,
            message=render_alert_message(anomaly_result.anomalies, root_cause),
            anomalies=list(anomaly_result.anomalies),
            root_cause=root_cause,
            created_at=anomaly_result.timestamp,
        )

        stored = self._store(alert)
        if stored is None:
            return alert

        logger.info("Created alert %s for device %s with level %s", stored.id, device_id, level.value)
        self._update_status(device_id, stored)
        return stored

    def _store(self, alert: Alert) -> Optional[Alert]:
        if self.sink is None:
            logger.warning("No alert store configured; alert for device %s is transient", alert.device_id)
            return None
        try:
            return self.sink.insert(alert)
        except Exception:
            logger.exception("Failed to store alert for device %s; continuing with transient alert", alert.device_id)
            return None

    def _update_status(self, device_id: str, alert: Alert) -> None:
        if self.status_updater is None:
            return
        try:
            self.status_updater.update_status(device_id, alert.level)
        except Exception:
            logger.exception("Failed to update status of device %s", device_id)
