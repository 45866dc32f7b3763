# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

from __future__ import annotations

from collections.abc import Sequence

from subagent_optimizer.core.records import Verdict, resolve_best_index
from subagent_optimizer.strategies.variants import PromptVariant

EVOLVED_MARKER = " (Optimized)"


def guidance_block(verdict: Verdict, winner_name: str) -> str:
    improvements = " ".join(verdict.improvements)
    suggestions = " ".join(verdict.suggestions)
    return (
        "Additional guidance based on previous analysis:\n"
        f"- {improvements}\n"
        f"- {suggestions}\n\n"
        f"Inspired by successful approach: {winner_name}"
    )


def mutate_variant(base: PromptVariant, verdict: Verdict, winner_name: str) -> PromptVariant:
    guidance = guidance_block(verdict, winner_name)

    def render(task: str, context: str | None = None) -> str:
        return f"{base.render(task, context)}\n\n{guidance}"

    return PromptVariant(name=f"{base.name}{EVOLVED_MARKER}", render=render)


def evolve_population(variants: Sequence[PromptVariant], verdict: Verdict) -> list[PromptVariant]:
    """
    Build the next population from ``variants`` and this round's verdict.

    The winning slot keeps the very same ``PromptVariant`` object; every other slot gets a
    fresh variant wrapping the old one with the judge's guidance. The input is not modified.
    """
    if not variants:
        return []
    best_idx = resolve_best_index(verdict.best_index, len(variants))
    winner = variants[best_idx]

    evolved: list[PromptVariant] = []
    for idx, variant in enumerate(variants):
        if idx == best_idx:
            evolved.append(winner)
        else:
            evolved.append(mutate_variant(variant, verdict, winner.name))
    return evolved
