"""
Backend entry point for Regulator Sentinel.

Composes the detection pipeline once at start-up and exposes a minimal HTTP
surface: reading ingestion (which triggers the pipeline), alert history,
manual sweeps and health reporting.
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Optional, Type
from urllib.parse import parse_qs, urlparse

from dotenv import load_dotenv
from pydantic import ValidationError

from backend.alerts import AlertComposer, InMemoryAlertStore, InMemoryDeviceRegistry
from backend.analysis import RootCauseResolver, create_root_cause_resolver
from backend.notify import Broadcaster, ObserverRegistry
from backend.pipeline import DetectionPipeline, DetectionSweep, PipelineState
from src.anomaly import AlertLevel, AnomalyEngine, BaselineProvider, InMemoryTTLCache, RedisBaselineCache
from src.anomaly.cache import BaselineCache
from src.anomaly.detectors import ZScoreDetector
from src.anomaly.scoring import AlertLevelPolicy
from src.core.config import Config, config
from src.core.exceptions import DataValidationError
from src.core.logging_config import setup_application_logging
from src.data import InMemoryReadingRepository, Reading, ensure_valid

logger = logging.getLogger("backend")


@dataclass
class Application:
    """Every long-lived component, composed once."""

    settings: Config
    repository: InMemoryReadingRepository
    baselines: BaselineProvider
    resolver: RootCauseResolver
    alert_store: InMemoryAlertStore
    devices: InMemoryDeviceRegistry
    broadcaster: Broadcaster
    pipeline: DetectionPipeline
    sweep: DetectionSweep

    def ingest(self, reading: Reading) -> PipelineState:
        ensure_valid(reading)
        self.repository.append(reading)
        self.broadcaster.broadcast_reading(reading)
        return self.pipeline.run(reading.device_id, reading)

    def health(self) -> Dict[str, Any]:
        return {
            "status": "ok",
            "connected_clients": self.broadcaster.connected_count(),
            "alerts": len(self.alert_store),
            "devices": len(self.repository.active_device_ids()),
        }

    def close(self) -> None:
        self.resolver.close()


def _build_cache(settings: Config) -> BaselineCache:
    if settings.redis.enabled:
        return RedisBaselineCache.from_config(settings.redis)
    return InMemoryTTLCache()


def build_application(
    settings: Optional[Config] = None,
    resolver: Optional[RootCauseResolver] = None,
    registry: Optional[ObserverRegistry] = None,
) -> Application:
    """
    Composition root. Collaborators are created here and injected downwards.
    """

    settings = settings or config
    repository = InMemoryReadingRepository()
    baselines = BaselineProvider(repository=repository, cache=_build_cache(settings), settings=settings.detection)
    policy = AlertLevelPolicy.from_config(settings.alerts)
    engine = AnomalyEngine(
        baselines=baselines,
        detector=ZScoreDetector(threshold=settings.detection.zscore_threshold),
        policy=policy,
    )
    if resolver is None:
        resolver = create_root_cause_resolver(settings.reasoning, settings.analysis)
    alert_store = InMemoryAlertStore()
    devices = InMemoryDeviceRegistry()
    composer = AlertComposer(sink=alert_store, status_updater=devices, policy=policy)
    broadcaster = Broadcaster(registry)
    pipeline = DetectionPipeline(
        engine=engine,
        resolver=resolver,
        composer=composer,
        broadcaster=broadcaster,
        settings=settings.pipeline,
    )
    sweep = DetectionSweep(pipeline=pipeline, repository=repository, max_workers=settings.pipeline.sweep_workers)

    return Application(
        settings=settings,
        repository=repository,
        baselines=baselines,
        resolver=resolver,
        alert_store=alert_store,
        devices=devices,
        broadcaster=broadcaster,
        pipeline=pipeline,
        sweep=sweep,
    )


def _state_to_payload(state: PipelineState) -> Dict[str, Any]:
    return state.model_dump(mode="json", exclude={"reading"})


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 query value; naive times are taken as UTC."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class BackendHandler(BaseHTTPRequestHandler):
    server_version = "RegulatorSentinel/1.0"
    app: Application

    def _send_json(self, status: int, payload: Dict[str, Any]) -> None:
        body = json.dumps(payload, default=str).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _read_json(self) -> Optional[Dict[str, Any]]:
        length = int(self.headers.get("Content-Length", "0"))
        if length <= 0:
            return None
        data = self.rfile.read(length)
        try:
            return json.loads(data.decode("utf-8"))
        except json.JSONDecodeError:
            return None

    def do_GET(self) -> None:
        url = urlparse(self.path)

        if url.path == "/health":
            self._send_json(200, self.app.health())
            return

        if url.path == "/alerts":
            self._handle_alerts(parse_qs(url.query))
            return

        self._send_json(404, {"detail": "Not found"})

    def do_OPTIONS(self) -> None:
        self.send_response(204)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.end_headers()

    def do_POST(self) -> None:
        if self.path == "/readings":
            self._handle_reading()
            return

        if self.path == "/detection/sweep":
            report = self.app.sweep.run()
            self._send_json(
                200,
                {
                    "completed": len(report.completed),
                    "anomalous": report.anomalous_devices,
                    "failed": report.failed,
                    "skipped": report.skipped,
                },
            )
            return

        if self.path == "/baselines/refresh":
            refreshed = self.app.baselines.refresh_all(self.app.repository.active_device_ids())
            self._send_json(200, {"refreshed": sorted(refreshed)})
            return

        self._send_json(404, {"detail": "Not found"})

    def _handle_reading(self) -> None:
        payload = self._read_json()
        if payload is None:
            self._send_json(400, {"detail": "Expected a JSON body"})
            return

        try:
            reading = Reading.model_validate(payload)
            state = self.app.ingest(reading)
        except ValidationError as exc:
            self._send_json(400, {"detail": exc.errors(include_url=False)})
            return
        except DataValidationError as exc:
            self._send_json(422, {"detail": str(exc)})
            return

        self._send_json(200, _state_to_payload(state))

    def _handle_alerts(self, params: Dict[str, list]) -> None:
        def first(name: str) -> Optional[str]:
            values = params.get(name)
            return values[0] if values else None

        try:
            level = first("level")
            alerts = self.app.alert_store.query(
                device_id=first("device_id"),
                level=AlertLevel(level) if level else None,
                start_time=_parse_time(first("start_time")),
                end_time=_parse_time(first("end_time")),
                limit=int(first("limit") or 100),
                offset=int(first("offset") or 0),
            )
        except ValueError as exc:
            self._send_json(400, {"detail": str(exc)})
            return

        self._send_json(
            200,
            {
                "alerts": [a.model_dump(mode="json") for a in alerts],
                "total_count": len(alerts),
            },
        )


def make_handler(app: Application) -> Type[BackendHandler]:
    """Bind the application to a handler class."""
    return type("BoundBackendHandler", (BackendHandler,), {"app": app})


def run(host: str, port: int) -> None:
    setup_application_logging()
    app = build_application()
    logger.info("Starting backend server on %s:%s", host, port)
    logger.info("Reasoning model=%s (LoRA=%s)", config.reasoning.model_path or "<not set>", config.reasoning.use_lora)
    logger.info("Baseline mode=%s, redis=%s", config.detection.baseline_mode, config.redis.enabled)
    server = ThreadingHTTPServer((host, port), make_handler(app))
    try:
        server.serve_forever()
    finally:
        server.server_close()
        app.close()


def main() -> None:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Regulator Sentinel backend server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    run(args.host, args.port)


if __name__ == "__main__":
    main()
