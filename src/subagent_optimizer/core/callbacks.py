# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

"""Callback protocol for observing optimization runs.

The optimization loop never logs on its own. It reports every lifecycle point to the
callbacks it was given; ``LoggingCallback`` turns those events into log records.
Callbacks are synchronous and observational: they receive immutable records and
cannot steer the loop.

Example usage:

    class PrintWinners:
        def on_verdict(self, round_number, verdict, parsed, error):
            print(f"Round {round_number}: slot {verdict.best_index} won")

    result = optimize("Summarize this text", gateway, callbacks=[PrintWinners()])
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from subagent_optimizer.core.records import RoundRecord, VariantResult, Verdict

if TYPE_CHECKING:
    from subagent_optimizer.core.result import OptimizationResult
    from subagent_optimizer.strategies.variants import PromptVariant

logger = logging.getLogger(__name__)


@runtime_checkable
class OptimizerCallback(Protocol):
    """Protocol for optimization callbacks.

    All methods are optional - implement only those you need.
    """

    def on_optimization_start(
        self,
        task: str,
        iterations: int,
        population: Sequence[PromptVariant],
    ) -> None:
        """Called once before the first round.

        Args:
            task: The task every variant is asked to perform.
            iterations: Number of rounds requested.
            population: The seed population.
        """
        ...

    def on_round_start(
        self,
        round_number: int,
        population: Sequence[PromptVariant],
    ) -> None:
        """Called after the cancellation check, before the fan-out.

        Args:
            round_number: Current round (1-indexed).
            population: The variants dispatched this round.
        """
        ...

    def on_variant_settled(
        self,
        round_number: int,
        index: int,
        result: VariantResult,
    ) -> None:
        """Called as each variant invocation succeeds or fails.

        Args:
            round_number: Current round.
            index: Slot of the variant in this round's population.
            result: The captured outcome.
        """
        ...

    def on_verdict(
        self,
        round_number: int,
        verdict: Verdict,
        parsed: bool,
        error: str | None,
    ) -> None:
        """Called once the judge step has produced a verdict.

        Args:
            round_number: Current round.
            verdict: The verdict used for this round.
            parsed: False when the default verdict was substituted.
            error: Why the default was substituted, if it was.
        """
        ...

    def on_evolution_applied(
        self,
        round_number: int,
        winner_name: str,
        population: Sequence[PromptVariant],
    ) -> None:
        """Called after the losing variants were rewritten.

        Args:
            round_number: Round whose verdict drove the evolution.
            winner_name: Name of the carried-forward variant.
            population: The population for the next round.
        """
        ...

    def on_evolution_skipped(
        self,
        round_number: int,
        reason: str,
    ) -> None:
        """Called when the population is carried forward unchanged.

        Args:
            round_number: Current round.
            reason: "final_round" or "not_decisive".
        """
        ...

    def on_round_end(
        self,
        round_number: int,
        record: RoundRecord,
    ) -> None:
        """Called after the round record was appended to history."""
        ...

    def on_cancelled(
        self,
        round_number: int,
        rounds_completed: int,
    ) -> None:
        """Called when a stop request is observed at a round boundary.

        Args:
            round_number: The round that will not start.
            rounds_completed: Rounds already in history.
        """
        ...

    def on_optimization_end(
        self,
        result: OptimizationResult,
    ) -> None:
        """Called with the final result, after the report was built."""
        ...


class CompositeCallback:
    """A callback that delegates to multiple child callbacks.

    Example:
        composite = CompositeCallback([callback1, callback2])
        optimize(..., callbacks=[composite])
    """

    def __init__(self, callbacks: list[Any] | None = None):
        self.callbacks = callbacks or []

    def add(self, callback: Any) -> None:
        self.callbacks.append(callback)

    def _notify(self, method_name: str, **kwargs: Any) -> None:
        notify_callbacks(self.callbacks, method_name, **kwargs)

    def on_optimization_start(self, **kwargs: Any) -> None:
        self._notify("on_optimization_start", **kwargs)

    def on_round_start(self, **kwargs: Any) -> None:
        self._notify("on_round_start", **kwargs)

    def on_variant_settled(self, **kwargs: Any) -> None:
        self._notify("on_variant_settled", **kwargs)

    def on_verdict(self, **kwargs: Any) -> None:
        self._notify("on_verdict", **kwargs)

    def on_evolution_applied(self, **kwargs: Any) -> None:
        self._notify("on_evolution_applied", **kwargs)

    def on_evolution_skipped(self, **kwargs: Any) -> None:
        self._notify("on_evolution_skipped", **kwargs)

    def on_round_end(self, **kwargs: Any) -> None:
        self._notify("on_round_end", **kwargs)

    def on_cancelled(self, **kwargs: Any) -> None:
        self._notify("on_cancelled", **kwargs)

    def on_optimization_end(self, **kwargs: Any) -> None:
        self._notify("on_optimization_end", **kwargs)


def notify_callbacks(
    callbacks: Sequence[Any] | None,
    method_name: str,
    **kwargs: Any,
) -> None:
    """Invoke ``method_name`` on every callback that defines it.

    A failing callback is logged and skipped; it never reaches the loop.
    """
    if not callbacks:
        return

    for callback in callbacks:
        method = getattr(callback, method_name, None)
        if method is not None:
            try:
                method(**kwargs)
            except Exception as e:
                logger.warning(f"Callback {callback} failed on {method_name}: {e}")


class LoggingCallback:
    """Reports every lifecycle event through the ``logging`` module."""

    def __init__(self, log: logging.Logger | None = None, preview_chars: int = 200):
        self.log = log or logger
        self.preview_chars = preview_chars

    def on_optimization_start(self, task, iterations, population):
        self.log.info("=== Starting Prompt Optimization ===")
        self.log.info(f"Task: {task}")
        self.log.info(f"Iterations: {iterations}, variants: {[v.name for v in population]}")

    def on_round_start(self, round_number, population):
        self.log.info(f"--- Iteration {round_number} --- running {len(population)} subagents in parallel")

    def on_variant_settled(self, round_number, index, result):
        if result.succeeded:
            self.log.info(
                f"Iteration {round_number}: subagent {index + 1} ({result.variant_name}) completed, "
                f"{len(result.output_text)} chars"
            )
            self.log.debug(f"Subagent {index + 1} result preview: {result.output_text[: self.preview_chars]}")
        else:
            self.log.warning(
                f"Iteration {round_number}: subagent {index + 1} ({result.variant_name}) FAILED: {result.output_text}"
            )

    def on_verdict(self, round_number, verdict, parsed, error):
        if not parsed:
            self.log.warning(f"Iteration {round_number}: judge reply unusable ({error}); using default verdict")
        self.log.info(
            f"Iteration {round_number}: best slot {verdict.best_index}, "
            f"prompt was the key factor: {verdict.prompt_was_decisive}"
        )
        self.log.debug(f"Iteration {round_number}: reasoning: {verdict.reasoning}")

    def on_evolution_applied(self, round_number, winner_name, population):
        self.log.info(
            f"Iteration {round_number}: evolved variants around '{winner_name}': {[v.name for v in population]}"
        )

    def on_evolution_skipped(self, round_number, reason):
        self.log.debug(f"Iteration {round_number}: population carried forward ({reason})")

    def on_round_end(self, round_number, record):
        self.log.info(f"Iteration {round_number}: best approach {record.best_result.variant_name}")

    def on_cancelled(self, round_number, rounds_completed):
        self.log.warning(f"Optimization cancelled before iteration {round_number} ({rounds_completed} completed)")

    def on_optimization_end(self, result):
        self.log.info(f"=== Optimization Complete === iterations completed: {result.rounds_completed}")
