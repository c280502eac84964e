"""
Application configuration for the Regulator Sentinel pipeline.

Provides environment-aware settings with conservative defaults. Detection
thresholds, alert policy and reasoning timeouts are configurable to avoid
hard-coded "magic numbers".
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MetricStatsConfig(BaseModel):
	"""Reference (mean, std) for a single metric."""

	mean: float
	std: float = Field(ge=0.0)


class DefaultBaselineConfig(BaseModel):
	"""
	Fixed reference baseline based on normal regulator operating parameters.

	Units:
	- inlet_pressure / outlet_pressure: MPa
	- temperature: degrees Celsius
	- flow_rate: m3/h
	"""

	inlet_pressure: MetricStatsConfig = MetricStatsConfig(mean=0.3, std=0.02)
	outlet_pressure: MetricStatsConfig = MetricStatsConfig(mean=2.5, std=0.1)
	temperature: MetricStatsConfig = MetricStatsConfig(mean=23.0, std=2.0)
	flow_rate: MetricStatsConfig = MetricStatsConfig(mean=500.0, std=20.0)


class DetectionConfig(BaseModel):
	"""
	Configuration for baseline lookup and Z-score detection.

	Notes:
	- zscore_threshold: a metric is anomalous when its z-score is strictly greater.
	- baseline_sample_size: readings used by explicit baseline recomputation.
	- baseline_cache_ttl_seconds: lifetime of cached baselines.
	- baseline_mode: "static" always uses the configured reference baseline so
	  that prior anomalous readings cannot pollute it; "history" serves cached
	  recomputed baselines and falls back to the reference one.
	- device_baselines: optional per-device overrides of the default baseline.
	"""

	zscore_threshold: float = Field(3.0, gt=0.0)
	baseline_sample_size: int = Field(1000, ge=1)
	baseline_cache_ttl_seconds: int = Field(3600, ge=1)
	baseline_cache_prefix: str = "baseline:"
	baseline_mode: str = Field(
		"static",
		description="Baseline strategy: 'static' (configured reference) or 'history' (cached recomputation)",
	)
	default_baseline: DefaultBaselineConfig = DefaultBaselineConfig()
	device_baselines: Dict[str, DefaultBaselineConfig] = Field(default_factory=dict)


class AlertPolicyConfig(BaseModel):
	"""
	Alert level policy.

	CRITICAL when more than critical_anomaly_count metrics are anomalous or the
	largest z-score exceeds critical_zscore; WARNING otherwise.
	"""

	critical_anomaly_count: int = Field(2, ge=0)
	critical_zscore: float = Field(5.0, ge=0.0)


class AnalysisConfig(BaseModel):
	"""
	Root-cause analysis configuration.

	Confidence values are fixed by the resolution path that produced them.
	"""

	reasoning_timeout_seconds: float = Field(30.0, gt=0.0)
	reasoning_workers: int = Field(4, ge=1)
	rule_confidence: float = Field(0.8, ge=0.0, le=1.0)
	reasoning_confidence: float = Field(0.6, ge=0.0, le=1.0)
	degraded_confidence: float = Field(0.3, ge=0.0, le=1.0)

	default_cause: str = "Automated analysis unavailable; root cause still under investigation"
	default_recommendation: str = "Inspect the device status manually"
	unknown_cause: str = "Unknown fault"
	unknown_recommendation: str = "Manual inspection recommended"
	default_risk_level: str = "medium"


class PipelineConfig(BaseModel):
	"""
	Pipeline orchestration configuration.

	Notes:
	- halt_on_failure: stop the run after the first failed stage. The default
	  (False) carries the error forward and lets the remaining stages decide.
	- sweep_workers: concurrent device pipelines during a multi-device sweep.
	"""

	halt_on_failure: bool = False
	sweep_workers: int = Field(8, ge=1)


class ReasoningModelConfig(BaseModel):
	"""
	Local causal language model used for fallback reasoning.

	Notes:
	- model_path unset disables fallback reasoning (default results only).
	- An existing local directory is always loaded offline.
	- Generation is greedy; the expected answer is one short JSON object.
	- use_lora attaches the adapter at lora_path on top of the base model.
	"""

	model_config = ConfigDict(protected_namespaces=())

	model_path: Optional[str] = Field(None, description="Local path or hub id of the reasoning model")
	max_new_tokens: int = Field(256, ge=32, le=2048)
	top_p: float = Field(0.9, ge=0.0, le=1.0)
	repetition_penalty: float = Field(1.05, ge=1.0, le=2.0)
	use_lora: bool = False
	lora_path: Path = Path("llm/models/lora")

	@property
	def local_files_only(self) -> bool:
		return bool(self.model_path) and Path(self.model_path).exists()


class RedisConfig(BaseModel):
	"""Optional Redis cache for computed baselines."""

	enabled: bool = False
	url: str = "redis://localhost:6379/0"
	socket_timeout: float = Field(2.0, gt=0.0)


class Config(BaseSettings):
	"""
	Global configuration with environment overrides.
	"""

	model_config = SettingsConfigDict(
		env_prefix="SENTINEL_",
		env_file=".env",
		env_nested_delimiter="__",
		extra="ignore",
		protected_namespaces=(),
	)

	log_level: str = Field("INFO", description="Default logging level")
	logs_dir: Path = Field(Path("logs"), description="Directory for log files")

	detection: DetectionConfig = DetectionConfig()
	alerts: AlertPolicyConfig = AlertPolicyConfig()
	analysis: AnalysisConfig = AnalysisConfig()
	pipeline: PipelineConfig = PipelineConfig()
	reasoning: ReasoningModelConfig = ReasoningModelConfig()
	redis: RedisConfig = RedisConfig()

	def model_post_init(self, __context: object) -> None:
		self.logs_dir.mkdir(parents=True, exist_ok=True)


config = Config()
