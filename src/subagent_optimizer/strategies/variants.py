# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

"""
Seed prompt strategies.

Every strategy is a pure function of ``(task, context)``. Evolution never edits a
variant; it builds a new one whose ``render`` wraps the old one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

RenderFn = Callable[[str, str | None], str]


@dataclass(frozen=True)
class PromptVariant:
    name: str
    render: RenderFn

    def __call__(self, task: str, context: str | None = None) -> str:
        return self.render(task, context)


def _context_preamble(context: str | None) -> str:
    return f"Context: {context}\n\n" if context else ""


def _direct(task: str, context: str | None = None) -> str:
    return f"{_context_preamble(context)}Task: {task}\n\nPlease complete this task directly and concisely."


def _step_by_step(task: str, context: str | None = None) -> str:
    return (
        f"{_context_preamble(context)}Task: {task}\n\n"
        "Please approach this task step-by-step:\n"
        "1. First, understand what is being asked\n"
        "2. Break down the problem\n"
        "3. Execute each step\n"
        "4. Verify your solution"
    )


def _expert_role(task: str, context: str | None = None) -> str:
    return (
        f"{_context_preamble(context)}You are an expert in this domain. Your task: {task}\n\n"
        "As an expert, provide a thorough and professional response."
    )


def _structured_output(task: str, context: str | None = None) -> str:
    return (
        f"{_context_preamble(context)}Task: {task}\n\n"
        "Please structure your response as follows:\n"
        "- Summary\n"
        "- Details\n"
        "- Recommendations (if applicable)\n"
        "- Conclusion"
    )


def _critical_thinking(task: str, context: str | None = None) -> str:
    return (
        f"{_context_preamble(context)}Task: {task}\n\n"
        "Before responding:\n"
        "1. Consider multiple approaches\n"
        "2. Evaluate potential issues\n"
        "3. Choose the best approach\n"
        "4. Explain your reasoning"
    )


SEED_VARIANTS: tuple[PromptVariant, ...] = (
    PromptVariant("Direct", _direct),
    PromptVariant("Step-by-Step", _step_by_step),
    PromptVariant("Expert Role", _expert_role),
    PromptVariant("Structured Output", _structured_output),
    PromptVariant("Critical Thinking", _critical_thinking),
)


def default_variants() -> list[PromptVariant]:
    return list(SEED_VARIANTS)


def with_disambiguation(prompt: str, index: int, name: str) -> str:
    """Append the per-subagent suffix naming the variant's 1-based ordinal and strategy."""
    return (
        f"{prompt}\n\n---\n"
        f'IMPORTANT: This is subagent #{index + 1} using the "{name}" approach. '
        "Complete the task and return your result."
    )


def invocation_description(index: int, name: str) -> str:
    return f"Subagent {index + 1}: {name} approach"
