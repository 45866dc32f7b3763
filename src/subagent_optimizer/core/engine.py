# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Callable

from subagent_optimizer.core.callbacks import notify_callbacks
from subagent_optimizer.core.executor import FanOutExecutor
from subagent_optimizer.core.judge import Judge
from subagent_optimizer.core.records import RoundRecord
from subagent_optimizer.core.report import build_report
from subagent_optimizer.core.result import LoopStatus, OptimizationResult
from subagent_optimizer.gateways.base import AgentGateway
from subagent_optimizer.strategies.evolver import evolve_population
from subagent_optimizer.strategies.variants import PromptVariant
from subagent_optimizer.utils.stop_condition import CancellationToken, should_stop


@dataclass
class RunState:
    """Mutable state of one run. Owned by a single ``OptimizationEngine.run`` call."""

    population: list[PromptVariant]
    history: list[RoundRecord] = field(default_factory=list)
    round_number: int = 0
    status: LoopStatus = LoopStatus.IDLE


class OptimizationEngine:
    """
    Drives rounds of fan-out, judging and conditional evolution.

    Rounds are strictly sequential. Stop requests (the cancel token and any stop callbacks)
    are checked only at the top of a round; in-flight work always runs to completion.
    Evolution runs only when the round is not the last one and the judge attributed the
    win to the prompt phrasing. Otherwise the same population object is reused.
    """

    def __init__(
        self,
        gateway: AgentGateway,
        *,
        callbacks: Sequence[Any] | None = None,
        stop_callbacks: Sequence[Callable[[Any], bool]] | None = None,
        cancel_token: CancellationToken | None = None,
        invoke_timeout_seconds: float | None = None,
        preview_chars: int = 500,
    ):
        self.gateway = gateway
        self.callbacks = list(callbacks or [])
        self.stop_callbacks = list(stop_callbacks or [])
        self.cancel_token = cancel_token or CancellationToken()
        self.preview_chars = preview_chars
        self.executor = FanOutExecutor(gateway, timeout_seconds=invoke_timeout_seconds, callbacks=self.callbacks)
        self.judge = Judge(gateway, timeout_seconds=invoke_timeout_seconds)
        self.state: RunState | None = None

    def _stop_requested(self, state: RunState) -> bool:
        if self.cancel_token.is_cancellation_requested:
            return True
        return should_stop(self.stop_callbacks, state)

    def _notify(self, method_name: str, **kwargs: Any) -> None:
        notify_callbacks(self.callbacks, method_name, **kwargs)

    async def _run_round(self, state: RunState, task: str, context: str | None, iterations: int) -> None:
        round_number = state.round_number
        population = state.population
        self._notify("on_round_start", round_number=round_number, population=population)

        results = await self.executor.run_all(
            task, context, population, cancel_token=self.cancel_token, round_number=round_number
        )
        parsed = await self.judge.evaluate(task, results, cancel_token=self.cancel_token)
        verdict = parsed.verdict
        self._notify("on_verdict", round_number=round_number, verdict=verdict, parsed=parsed.ok, error=parsed.error)

        record = RoundRecord(round_number=round_number, results=tuple(results), verdict=verdict)
        state.history.append(record)

        if round_number >= iterations:
            self._notify("on_evolution_skipped", round_number=round_number, reason="final_round")
        elif not verdict.prompt_was_decisive:
            self._notify("on_evolution_skipped", round_number=round_number, reason="not_decisive")
        else:
            state.population = evolve_population(population, verdict)
            self._notify(
                "on_evolution_applied",
                round_number=round_number,
                winner_name=population[record.best_index].name,
                population=state.population,
            )

        self._notify("on_round_end", round_number=round_number, record=record)

    async def run(
        self,
        task: str,
        variants: Sequence[PromptVariant],
        iterations: int,
        context: str | None = None,
    ) -> OptimizationResult:
        if iterations < 1:
            raise ValueError(f"iterations must be >= 1, got {iterations}")
        if not variants:
            raise ValueError("at least one prompt variant is required")

        state = RunState(population=list(variants), status=LoopStatus.RUNNING)
        self.state = state
        self._notify("on_optimization_start", task=task, iterations=iterations, population=state.population)

        cancelled = False
        for round_number in range(1, iterations + 1):
            state.round_number = round_number
            if self._stop_requested(state):
                cancelled = True
                self._notify("on_cancelled", round_number=round_number, rounds_completed=len(state.history))
                break
            await self._run_round(state, task, context, iterations)

        state.status = LoopStatus.COMPLETED
        history = tuple(state.history)
        result = OptimizationResult(
            task=task,
            history=history,
            report=build_report(task, history, preview_chars=self.preview_chars),
            status=state.status,
            cancelled=cancelled,
            iterations_requested=iterations,
        )
        self._notify("on_optimization_end", result=result)
        return result
