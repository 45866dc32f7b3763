# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Callable

from subagent_optimizer.config import OptimizerConfig
from subagent_optimizer.core.callbacks import LoggingCallback
from subagent_optimizer.core.engine import OptimizationEngine
from subagent_optimizer.core.result import OptimizationResult
from subagent_optimizer.gateways.base import AgentGateway
from subagent_optimizer.strategies.variants import PromptVariant, default_variants
from subagent_optimizer.utils.stop_condition import CancellationToken

TASK_PREVIEW_CHARS = 100


@dataclass(frozen=True)
class OptimizerParameters:
    """Parameters a host passes when invoking the optimizer."""

    task: str
    iterations: int | None = None
    context: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.task, str) or not self.task.strip():
            raise ValueError("task must be a non-empty string")
        if self.iterations is not None and (isinstance(self.iterations, bool) or not isinstance(self.iterations, int)):
            raise ValueError(f"iterations must be an integer, got {self.iterations!r}")
        if self.iterations is not None and self.iterations < 1:
            raise ValueError(f"iterations must be >= 1, got {self.iterations}")
        if self.context is not None and not isinstance(self.context, str):
            raise ValueError(f"context must be a string, got {type(self.context).__name__}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], config: OptimizerConfig | None = None) -> OptimizerParameters:
        """Validate host-supplied parameters; with ``config``, iterations are also checked against its maximum."""
        if not isinstance(data, Mapping):
            raise ValueError("parameters must be a mapping")
        params = cls(task=data.get("task"), iterations=data.get("iterations"), context=data.get("context"))
        if config is not None:
            params.resolve_iterations(config)
        return params

    def resolve_iterations(self, config: OptimizerConfig) -> int:
        iterations = config.iterations if self.iterations is None else self.iterations
        if not 1 <= iterations <= config.max_iterations:
            raise ValueError(f"iterations must be between 1 and {config.max_iterations}, got {iterations}")
        return iterations


def invocation_message(params: OptimizerParameters, config: OptimizerConfig | None = None) -> dict[str, str]:
    """Confirmation text a host can show before starting a run. Purely informational."""
    config = config or OptimizerConfig()
    iterations = params.resolve_iterations(config)
    population = len(default_variants())
    task = params.task
    if len(task) > TASK_PREVIEW_CHARS:
        task = task[:TASK_PREVIEW_CHARS] + "..."
    return {
        "invocation_message": (
            f"Running prompt optimization with {iterations} iteration(s), each with {population} parallel subagents..."
        ),
        "title": "Optimize Prompt with Subagents",
        "message": (
            f"This will run **{iterations}** optimization loop(s), each executing **{population} subagents** "
            "in parallel.\n\n"
            f"**Task:** {task}\n\n"
            "The tool will:\n"
            f"1. Run {population} subagents with different prompt strategies\n"
            "2. Analyze which produces the best result\n"
            "3. Learn and improve prompts for the next iteration\n"
            "4. Report the optimal prompt approach found"
        ),
    }


async def optimize_async(
    task: str,
    gateway: AgentGateway,
    *,
    iterations: int | None = None,
    context: str | None = None,
    config: OptimizerConfig | None = None,
    variants: Sequence[PromptVariant] | None = None,
    callbacks: Sequence[Any] | None = None,
    stop_callbacks: Sequence[Callable[[Any], bool]] | None = None,
    cancel_token: CancellationToken | None = None,
) -> OptimizationResult:
    """
    Run the prompt optimization loop for ``task`` against ``gateway``.

    Each round sends the task through every variant concurrently, asks the gateway to judge
    the results, and, when the judge says the phrasing decided the win, evolves the losing
    variants toward the winner. Stop requests are honoured between rounds only.

    Args:
        task: What every subagent should do.
        gateway: The agent capability used for both the variants and the judge.
        iterations: Number of rounds; defaults to ``config.iterations``.
        context: Optional background prepended to every prompt.
        config: Run configuration; defaults to ``OptimizerConfig()``.
        variants: Seed population; defaults to the five built-in strategies.
        callbacks: Observers; when omitted, a ``LoggingCallback`` is installed.
        stop_callbacks: Stop conditions polled at each round boundary.
        cancel_token: Cooperative cancellation flag, also passed to every gateway call.

    Returns:
        OptimizationResult with the per-round history and the Markdown report.

    Raises:
        ValueError: if the parameters are invalid. Nothing is invoked in that case.
    """
    config = config or OptimizerConfig()
    params = OptimizerParameters(task=task, iterations=iterations, context=context)
    rounds = params.resolve_iterations(config)
    population = list(variants) if variants is not None else default_variants()
    if not population:
        raise ValueError("variants must not be empty")

    if callbacks is None:
        callbacks = [LoggingCallback()]

    engine = OptimizationEngine(
        gateway,
        callbacks=callbacks,
        stop_callbacks=stop_callbacks,
        cancel_token=cancel_token,
        invoke_timeout_seconds=config.invoke_timeout_seconds,
        preview_chars=config.preview_chars,
    )
    return await engine.run(params.task, population, rounds, context=params.context)


def optimize(task: str, gateway: AgentGateway, **kwargs: Any) -> OptimizationResult:
    """Synchronous wrapper around ``optimize_async``; see it for arguments."""
    return asyncio.run(optimize_async(task, gateway, **kwargs))
