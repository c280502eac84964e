"""
Root-cause resolution for detected anomalies.

Two tiers:
- Rule matching against the static fault catalog.
- Fallback reasoning through a local model, bounded by a timeout.

Every failure of the reasoning tier degrades to a fixed default result;
analyze() never raises.
"""

from __future__ import annotations

import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

from pydantic import ValidationError

from llm.prompt import build_prompt
from llm.schema import Diagnosis, Reasoner
from src.anomaly.schema import Anomaly
from src.core.config import AnalysisConfig, ReasoningModelConfig, config
from src.core.exceptions import ReasoningParseError, ReasoningTimeoutError

from .rules import RuleCatalog
from .schema import AnalysisMethod, RootCauseResult

logger = logging.getLogger("backend.analysis")


def _extract_json_object(raw: str) -> Dict[str, object]:
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise ReasoningParseError("No JSON object found in reasoning output")
    try:
        payload = json.loads(raw[start : end + 1])
    except json.JSONDecodeError as exc:
        raise ReasoningParseError(f"Malformed JSON in reasoning output: {exc}") from exc
    if not isinstance(payload, dict):
        raise ReasoningParseError("Reasoning output JSON is not an object")
    return payload


def parse_diagnosis(raw: str) -> Diagnosis:
    """
    Parse the first JSON object of a reasoning response.

    Raises:
        ReasoningParseError: If no object is found or it does not validate.
    """
    payload = _extract_json_object(raw or "")
    try:
        diagnosis = Diagnosis.model_validate(payload)
    except ValidationError as exc:
        raise ReasoningParseError(f"Invalid diagnosis: {exc}") from exc
    return diagnosis


@dataclass
class RootCauseResolver:
    """
    Root-cause resolver.

    - Rules first, in priority order.
    - Reasoning call raced against a deadline on a worker thread.
    - Timeouts, call failures and unparsable output return the default result.
    """

    rules: RuleCatalog = field(default_factory=RuleCatalog)
    reasoner: Optional[Reasoner] = None
    settings: AnalysisConfig = field(default_factory=lambda: config.analysis)
    executor: Optional[ThreadPoolExecutor] = None

    def __post_init__(self) -> None:
        if self.executor is None:
            self.executor = ThreadPoolExecutor(
                max_workers=self.settings.reasoning_workers,
                thread_name_prefix="reasoning",
            )

    def analyze(self, anomalies: Sequence[Anomaly]) -> RootCauseResult:
        logger.info("Analyzing root cause for %d anomalies", len(anomalies))

        match = self.rules.match(anomalies)
        if match is not None:
            logger.info("Rule matched: %s", match.rule_id)
            return RootCauseResult(
                cause=match.cause,
                recommendation=match.recommendation,
                confidence=self.settings.rule_confidence,
                method=AnalysisMethod.RULE_BASED,
                rule_id=match.rule_id,
            )

        logger.info("No rule matched, using fallback reasoning")
        return self._reason(anomalies)

    def close(self) -> None:
        """Release reasoning workers without waiting for stuck calls."""
        self.executor.shutdown(wait=False, cancel_futures=True)

    def _reason(self, anomalies: Sequence[Anomaly]) -> RootCauseResult:
        if self.reasoner is None:
            logger.warning("No reasoning service configured; using default result")
            return self._default_result()

        started = time.monotonic()
        try:
            prompt = build_prompt(anomalies)
            raw = self._complete_with_timeout(prompt)
        except ReasoningTimeoutError as exc:
            logger.warning("%s; using default result", exc)
            return self._default_result()
        except Exception as exc:
            logger.exception("Reasoning call failed: %s", exc)
            return self._default_result()

        logger.info("Reasoning responded in %.2fs", time.monotonic() - started)
        logger.debug("Raw reasoning output: %s", raw)

        try:
            diagnosis = parse_diagnosis(raw)
        except ReasoningParseError as exc:
            logger.warning("Failed to parse reasoning output: %s; using default result", exc)
            return self._default_result()

        return RootCauseResult(
            cause=diagnosis.cause or self.settings.unknown_cause,
            recommendation=diagnosis.recommendation or self.settings.unknown_recommendation,
            confidence=self.settings.reasoning_confidence,
            method=AnalysisMethod.FALLBACK_REASONING,
            risk_level=diagnosis.risk_level or self.settings.default_risk_level,
        )

    def _complete_with_timeout(self, prompt: str) -> str:
        timeout = self.settings.reasoning_timeout_seconds
        future = self.executor.submit(self.reasoner.complete, prompt)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError as exc:
            # A running call cannot be interrupted; its result is discarded
            future.cancel()
            raise ReasoningTimeoutError(f"Reasoning timed out after {timeout}s") from exc

    def _default_result(self) -> RootCauseResult:
        return RootCauseResult(
            cause=self.settings.default_cause,
            recommendation=self.settings.default_recommendation,
            confidence=self.settings.degraded_confidence,
            method=AnalysisMethod.FALLBACK_REASONING,
        )


def create_root_cause_resolver(
    reasoning: Optional[ReasoningModelConfig] = None,
    settings: Optional[AnalysisConfig] = None,
) -> RootCauseResolver:
    """
    Factory for the resolver, with a local Mistral model when a model path is configured.
    """

    reasoning = reasoning or config.reasoning
    settings = settings or config.analysis
    if not reasoning.model_path:
        logger.info("No reasoning model configured; unmatched anomalies get the default result")
        return RootCauseResolver(settings=settings)

    from llm.mistral import MistralLocalModel

    return RootCauseResolver(reasoner=MistralLocalModel(config=reasoning), settings=settings)
