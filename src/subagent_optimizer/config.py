# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

"""
Central configuration knobs for subagent_optimizer.

Defaults run three rounds of the five seed strategies. Override values by passing
keyword args, or read them from ``SUBAGENT_OPTIMIZER_*`` environment variables with
``OptimizerConfig.from_env()``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from subagent_optimizer.gateways.litellm_gateway import ModelConfig

ENV_PREFIX = "SUBAGENT_OPTIMIZER_"
DEFAULT_MODEL = "openai/gpt-4o-mini"


def _get_env(key: str) -> str | None:
    value = os.getenv(ENV_PREFIX + key)
    if value is None or not value.strip():
        return None
    return value.strip()


def _get_int_env(key: str, default: int | None) -> int | None:
    """Get an integer environment variable with a safe fallback."""
    value = _get_env(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: float | None) -> float | None:
    """Get a float environment variable with a safe fallback."""
    value = _get_env(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass(slots=True)
class OptimizerConfig:
    iterations: int = 3
    max_iterations: int = 20
    preview_chars: int = 500
    invoke_timeout_seconds: float | None = None

    # LiteLLM gateway
    model: str = DEFAULT_MODEL
    temperature: float | None = None
    max_tokens: int | None = None

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if not 1 <= self.iterations <= self.max_iterations:
            raise ValueError(f"iterations must be between 1 and {self.max_iterations}, got {self.iterations}")
        if self.preview_chars < 0:
            raise ValueError(f"preview_chars must be >= 0, got {self.preview_chars}")
        if self.invoke_timeout_seconds is not None and self.invoke_timeout_seconds <= 0:
            raise ValueError(f"invoke_timeout_seconds must be positive, got {self.invoke_timeout_seconds}")
        level = self.log_level.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {self.log_level}")
        self.log_level = level

    @classmethod
    def from_env(cls, **overrides) -> OptimizerConfig:
        values = dict(
            iterations=_get_int_env("ITERATIONS", 3),
            invoke_timeout_seconds=_get_float_env("TIMEOUT", None),
            model=_get_env("MODEL") or DEFAULT_MODEL,
            temperature=_get_float_env("TEMPERATURE", None),
            max_tokens=_get_int_env("MAX_TOKENS", None),
            log_level=_get_env("LOG_LEVEL") or "INFO",
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def model_config(self) -> ModelConfig:
        return ModelConfig(name=self.model, temperature=self.temperature, max_tokens=self.max_tokens)
