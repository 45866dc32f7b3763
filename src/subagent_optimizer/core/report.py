# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

"""
Reduces a run's history into the Markdown report handed back to the caller.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from subagent_optimizer.core.records import RoundRecord

TRUNCATION_MARKER = "...[truncated]"
NO_DOMINANT_STRATEGY = (
    "No clear winning prompt strategy was identified. Results may have been largely dependent on "
    "random factors rather than prompt engineering."
)
NO_ITERATIONS = "No iterations completed, so there is no best prompt or result to report."

_BACKTICK_RUN = re.compile(r"`+")


@dataclass(frozen=True)
class Report:
    markdown: str
    rounds_completed: int
    dominant_strategy: str | None
    dominant_wins: int
    key_learnings: tuple[str, ...]
    best_variant_name: str | None
    best_prompt: str | None
    best_output: str | None

    def to_dict(self) -> dict[str, Any]:
        return dict(
            rounds_completed=self.rounds_completed,
            dominant_strategy=self.dominant_strategy,
            dominant_wins=self.dominant_wins,
            key_learnings=list(self.key_learnings),
            best_variant_name=self.best_variant_name,
            best_prompt=self.best_prompt,
            best_output=self.best_output,
        )


def fenced(content: str) -> str:
    """Wrap ``content`` in a code fence longer than any backtick run it contains."""
    longest = max((len(m.group(0)) for m in _BACKTICK_RUN.finditer(content)), default=0)
    fence = "`" * max(3, longest + 1)
    return f"{fence}\n{content}\n{fence}"


def preview(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + TRUNCATION_MARKER
    return text


def dominant_strategy(history: Sequence[RoundRecord]) -> tuple[str | None, int]:
    # mode over decisive rounds; dict insertion order breaks ties by first win
    wins: dict[str, int] = {}
    for record in history:
        if record.verdict.prompt_was_decisive:
            name = record.best_result.variant_name
            wins[name] = wins.get(name, 0) + 1
    if not wins:
        return None, 0
    best_name = max(wins, key=lambda name: wins[name])
    return best_name, wins[best_name]


def key_learnings(history: Sequence[RoundRecord]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(imp for record in history for imp in record.verdict.improvements))


def _round_section(record: RoundRecord, preview_chars: int) -> list[str]:
    verdict = record.verdict
    best = record.best_result
    lines = [
        f"## Iteration {record.round_number}",
        "",
        f"**Best Approach:** {best.variant_name}",
        "",
        f"**Reasoning:** {verdict.reasoning}",
        "",
        f"**Prompt was the key factor:** {'Yes' if verdict.prompt_was_decisive else 'No (likely random/luck)'}",
        "",
    ]
    if verdict.improvements:
        lines.append("**Improvements identified:**")
        lines.extend(f"- {imp}" for imp in verdict.improvements)
        lines.append("")
    lines.append("**Best Result Preview:**")
    lines.append(fenced(preview(best.output_text, preview_chars)))
    lines.append("")
    return lines


def build_report(task: str, history: Sequence[RoundRecord], preview_chars: int = 500) -> Report:
    """
    Build the report for ``task`` from ``history``.

    Pure function of its inputs. The final round's best prompt and full output are the
    deliverable; with an empty history the report says no iterations completed.
    """
    lines = [
        "# Prompt Optimization Report",
        "",
        f"**Original Task:** {task}",
        "",
        f"**Total Iterations:** {len(history)}",
        "",
        "---",
        "",
    ]
    for record in history:
        lines.extend(_round_section(record, preview_chars))

    strategy, wins = dominant_strategy(history)
    learnings = key_learnings(history)

    lines.append("## Final Conclusions")
    lines.append("")
    if not history:
        lines.append(NO_ITERATIONS)
    elif strategy is not None:
        lines.append(f"**Most effective prompt approach:** {strategy} (won {wins} time(s))")
    else:
        lines.append(NO_DOMINANT_STRATEGY)
    if learnings:
        lines.append("")
        lines.append("**Key learnings:**")
        lines.extend(f"- {imp}" for imp in learnings)

    best = history[-1].best_result if history else None
    if best is not None:
        lines.extend(
            [
                "",
                "## Best Prompt (Final Delegation Instruction)",
                "",
                "The most effective prompt found through optimization:",
                "",
                fenced(best.prompt_sent),
                "",
                "## Final Best Result",
                "",
                fenced(best.output_text),
            ]
        )

    return Report(
        markdown="\n".join(lines) + "\n",
        rounds_completed=len(history),
        dominant_strategy=strategy,
        dominant_wins=wins,
        key_learnings=learnings,
        best_variant_name=best.variant_name if best else None,
        best_prompt=best.prompt_sent if best else None,
        best_output=best.output_text if best else None,
    )
