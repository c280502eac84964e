"""
Local Mistral model loader and completion wrapper.

Implements the reasoning service contract `complete(prompt) -> text`.
Offline-only when the model path exists locally.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from threading import Lock
from typing import Optional

from transformers import AutoModelForCausalLM, AutoTokenizer
from peft import PeftModel

from src.core.config import ReasoningModelConfig
from src.core.exceptions import ConfigurationError, ModelInferenceError

logger = logging.getLogger("llm")


@dataclass
class MistralLocalModel:
    """
    Local Mistral model wrapper.

    Greedy decoding (do_sample=False) keeps the output shape deterministic.
    Loading is lazy and guarded so concurrent first calls load the weights once.
    """

    config: ReasoningModelConfig
    _tokenizer: Optional[AutoTokenizer] = None
    _model: Optional[AutoModelForCausalLM] = None

    def __post_init__(self) -> None:
        self._load_lock = Lock()

    def load(self) -> None:
        with self._load_lock:
            if self._model is not None and self._tokenizer is not None:
                return
            if not self.config.model_path:
                raise ConfigurationError("No reasoning model path configured")
            try:
                import torch
                device = "cuda" if torch.cuda.is_available() else "cpu"
            except Exception:
                device = "cpu"

            logger.info("Loading base model from %s (local_files_only=%s, device=%s)", self.config.model_path, self.config.local_files_only, device)
            try:
                self._tokenizer = AutoTokenizer.from_pretrained(
                    self.config.model_path, local_files_only=self.config.local_files_only
                )
                model = AutoModelForCausalLM.from_pretrained(
                    self.config.model_path, local_files_only=self.config.local_files_only
                )
                logger.info("Base model loaded successfully")
                if self.config.use_lora:
                    logger.info("Attaching LoRA adapter from %s", self.config.lora_path)
                    model = PeftModel.from_pretrained(
                        model,
                        str(self.config.lora_path),
                        is_trainable=False,
                        local_files_only=self.config.local_files_only,
                    )
                    logger.info("LoRA adapter attached")
            except OSError as exc:
                raise ModelInferenceError(f"Model load failed: {exc}") from exc
            model.eval()
            self._model = model

    def complete(self, prompt: str) -> str:
        if self._model is None or self._tokenizer is None:
            self.load()

        max_positions = getattr(self._model.config, "n_positions", None) or getattr(
            self._model.config, "max_position_embeddings", None
        )
        model_max_length = self._tokenizer.model_max_length
        if max_positions:
            max_length = min(model_max_length, max_positions)
        else:
            max_length = model_max_length

        max_input_tokens = max_length - self.config.max_new_tokens
        if max_input_tokens < 1:
            max_input_tokens = max_length

        inputs = self._tokenizer(
            prompt,
            return_tensors="pt",
            truncation=True,
            max_length=max_input_tokens,
        )
        prompt_length = inputs["input_ids"].shape[1]
        max_available = max_length - prompt_length
        max_new_tokens = max(1, min(self.config.max_new_tokens, max_available))
        output_ids = self._model.generate(
            **inputs,
            max_new_tokens=max_new_tokens,
            top_p=self.config.top_p,
            repetition_penalty=self.config.repetition_penalty,
            do_sample=False,
            eos_token_id=self._tokenizer.eos_token_id,
        )
        # Only the continuation; the prompt itself contains a JSON template
        return self._tokenizer.decode(output_ids[0][prompt_length:], skip_special_tokens=True)
