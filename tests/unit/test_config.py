"""
Unit tests for environment-driven configuration.
"""

from backend.analysis.resolver import create_root_cause_resolver
from src.core.config import AnalysisConfig, Config, ReasoningModelConfig


def test_defaults(tmp_path):
    cfg = Config(logs_dir=tmp_path / "logs")

    assert cfg.detection.zscore_threshold == 3.0
    assert cfg.detection.baseline_mode == "static"
    assert cfg.alerts.critical_anomaly_count == 2
    assert cfg.analysis.reasoning_timeout_seconds == 30.0
    assert cfg.pipeline.halt_on_failure is False
    assert (tmp_path / "logs").is_dir()


def test_nested_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("SENTINEL_DETECTION__ZSCORE_THRESHOLD", "2.5")
    monkeypatch.setenv("SENTINEL_PIPELINE__HALT_ON_FAILURE", "true")
    monkeypatch.setenv("SENTINEL_REDIS__ENABLED", "1")

    cfg = Config(logs_dir=tmp_path)

    assert cfg.detection.zscore_threshold == 2.5
    assert cfg.pipeline.halt_on_failure is True
    assert cfg.redis.enabled is True


def test_reasoning_model_from_env(monkeypatch, tmp_path):
    model_dir = tmp_path / "mistral"
    model_dir.mkdir()
    monkeypatch.setenv("SENTINEL_REASONING__MODEL_PATH", str(model_dir))
    monkeypatch.setenv("SENTINEL_REASONING__USE_LORA", "yes")

    cfg = Config(logs_dir=tmp_path)

    assert cfg.reasoning.model_path == str(model_dir)
    assert cfg.reasoning.use_lora is True
    assert cfg.reasoning.local_files_only is True


def test_reasoning_model_defaults():
    reasoning = ReasoningModelConfig()

    assert reasoning.model_path is None
    assert reasoning.local_files_only is False
    assert ReasoningModelConfig(model_path="mistralai/Mistral-7B-Instruct-v0.2").local_files_only is False


def test_resolver_without_model_uses_defaults():
    resolver = create_root_cause_resolver(ReasoningModelConfig(), AnalysisConfig(reasoning_workers=1))
    try:
        assert resolver.reasoner is None
        assert resolver.settings.reasoning_workers == 1
    finally:
        resolver.close()
