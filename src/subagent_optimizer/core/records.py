# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFAULT_REASONING = "Unable to analyze results properly, defaulting to first result"


def resolve_best_index(index: int, size: int) -> int:
    """Return ``index`` if it addresses one of ``size`` slots, else 0."""
    if isinstance(index, bool) or not isinstance(index, int):
        return 0
    if 0 <= index < size:
        return index
    return 0


@dataclass(frozen=True)
class VariantResult:
    """Outcome of running one prompt variant for one round."""

    variant_name: str
    prompt_sent: str
    output_text: str
    succeeded: bool

    def to_dict(self) -> dict[str, Any]:
        return dict(
            variant_name=self.variant_name,
            prompt_sent=self.prompt_sent,
            output_text=self.output_text,
            succeeded=self.succeeded,
        )


@dataclass(frozen=True)
class Verdict:
    """
    Structured judgment of a round.

    - best_index: slot of the winning result in the round's population
    - reasoning: the judge's explanation
    - prompt_was_decisive: True when the win is attributed to the phrasing rather than chance
    - improvements / suggestions: free-text guidance used to evolve the losing variants
    """

    best_index: int
    reasoning: str
    prompt_was_decisive: bool
    improvements: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()

    @classmethod
    def default(cls) -> Verdict:
        return cls(
            best_index=0,
            reasoning=DEFAULT_REASONING,
            prompt_was_decisive=False,
            improvements=(),
            suggestions=(),
        )

    def to_dict(self) -> dict[str, Any]:
        return dict(
            best_index=self.best_index,
            reasoning=self.reasoning,
            prompt_was_decisive=self.prompt_was_decisive,
            improvements=list(self.improvements),
            suggestions=list(self.suggestions),
        )


@dataclass(frozen=True)
class VerdictParse:
    """Tagged outcome of decoding a judge reply; ``ok=False`` always carries the default verdict."""

    verdict: Verdict
    ok: bool
    error: str | None = None

    @classmethod
    def success(cls, verdict: Verdict) -> VerdictParse:
        return cls(verdict=verdict, ok=True)

    @classmethod
    def fallback(cls, error: str) -> VerdictParse:
        return cls(verdict=Verdict.default(), ok=False, error=error)


@dataclass(frozen=True)
class RoundRecord:
    round_number: int
    results: tuple[VariantResult, ...]
    verdict: Verdict

    @property
    def best_index(self) -> int:
        return resolve_best_index(self.verdict.best_index, len(self.results))

    @property
    def best_result(self) -> VariantResult:
        return self.results[self.best_index]

    def to_dict(self) -> dict[str, Any]:
        return dict(
            round_number=self.round_number,
            results=[r.to_dict() for r in self.results],
            verdict=self.verdict.to_dict(),
            best_index=self.best_index,
        )
