# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from subagent_optimizer.utils.stop_condition import CancellationToken

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ModelConfig:
    """Configuration for an LLM call."""

    name: str
    temperature: float | None = None
    max_tokens: int | None = None
    reasoning_effort: str | None = None


class LiteLLMGateway:
    """
    Gateway that sends each prompt as a single user message through LiteLLM.

    Any provider LiteLLM supports works here, e.g. ``ModelConfig("openrouter/openai/gpt-4o-mini")``.
    """

    def __init__(self, model: ModelConfig | str):
        if isinstance(model, str):
            model = ModelConfig(name=model)
        self.model = model

    def completion_kwargs(self, prompt: str, description: str) -> dict[str, Any]:
        completion_kwargs: dict[str, Any] = {
            "model": self.model.name,
            "messages": [{"role": "user", "content": prompt}],
            "metadata": {"description": description},
        }
        if self.model.max_tokens is not None:
            completion_kwargs["max_tokens"] = self.model.max_tokens
        if self.model.temperature is not None:
            completion_kwargs["temperature"] = self.model.temperature
        if self.model.reasoning_effort is not None:
            completion_kwargs["reasoning_effort"] = self.model.reasoning_effort
        return completion_kwargs

    async def invoke(
        self,
        prompt: str,
        description: str,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        from litellm import acompletion

        logger.debug(f"{description}: calling {self.model.name} with {len(prompt)} chars")
        response = await acompletion(**self.completion_kwargs(prompt, description))
        content = response.choices[0].message.content
        return content or ""
