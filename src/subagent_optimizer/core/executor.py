# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

"""
Concurrent fan-out of one round's population to the agent gateway.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

from subagent_optimizer.core.callbacks import notify_callbacks
from subagent_optimizer.core.records import VariantResult
from subagent_optimizer.gateways.base import AgentGateway, extract_text
from subagent_optimizer.strategies.variants import PromptVariant, invocation_description, with_disambiguation
from subagent_optimizer.utils.stop_condition import CancellationToken


def _error_text(error: BaseException) -> str:
    message = str(error) or type(error).__name__
    return f"Error: {message}"


class FanOutExecutor:
    """
    Runs every variant of a round concurrently and waits for all of them to settle.

    A variant that fails (render error, gateway error, timeout, malformed reply) becomes a
    ``VariantResult`` with ``succeeded=False``; it never cancels its siblings.
    """

    def __init__(
        self,
        gateway: AgentGateway,
        *,
        timeout_seconds: float | None = None,
        callbacks: Sequence[Any] | None = None,
    ):
        self.gateway = gateway
        self.timeout_seconds = timeout_seconds
        self.callbacks = callbacks

    async def _run_one(
        self,
        index: int,
        variant: PromptVariant,
        task: str,
        context: str | None,
        cancel_token: CancellationToken | None,
        round_number: int | None,
    ) -> VariantResult:
        prompt = ""
        try:
            prompt = with_disambiguation(variant.render(task, context), index, variant.name)
            call = self.gateway.invoke(prompt, invocation_description(index, variant.name), cancel_token)
            if self.timeout_seconds is not None:
                reply = await asyncio.wait_for(call, timeout=self.timeout_seconds)
            else:
                reply = await call
            result = VariantResult(
                variant_name=variant.name,
                prompt_sent=prompt,
                output_text=extract_text(reply),
                succeeded=True,
            )
        except asyncio.TimeoutError:
            result = VariantResult(
                variant_name=variant.name,
                prompt_sent=prompt,
                output_text=f"Error: timed out after {self.timeout_seconds}s",
                succeeded=False,
            )
        except Exception as e:
            result = VariantResult(
                variant_name=variant.name,
                prompt_sent=prompt,
                output_text=_error_text(e),
                succeeded=False,
            )

        notify_callbacks(
            self.callbacks,
            "on_variant_settled",
            round_number=round_number,
            index=index,
            result=result,
        )
        return result

    async def run_all(
        self,
        task: str,
        context: str | None,
        variants: Sequence[PromptVariant],
        cancel_token: CancellationToken | None = None,
        round_number: int | None = None,
    ) -> list[VariantResult]:
        """Return one result per variant, in population order."""
        if not variants:
            return []
        tasks = [
            self._run_one(idx, variant, task, context, cancel_token, round_number)
            for idx, variant in enumerate(variants)
        ]
        return list(await asyncio.gather(*tasks))
