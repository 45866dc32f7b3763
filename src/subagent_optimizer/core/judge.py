# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

"""
Judge step: one comparison prompt, one gateway call, one verdict.

The judge's reply is free-form text from a model. It is never trusted: the first
balanced ``{...}`` substring is pulled out, decoded, and checked field by field.
Any failure yields the default verdict wrapped in a ``VerdictParse`` with ``ok=False``.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, ValidationError

from subagent_optimizer.core.records import VariantResult, Verdict, VerdictParse
from subagent_optimizer.gateways.base import AgentGateway, extract_text
from subagent_optimizer.utils.stop_condition import CancellationToken

JUDGE_DESCRIPTION = "Analysis subagent: Evaluating results"


def format_results(results: Sequence[VariantResult]) -> str:
    blocks = []
    for i, result in enumerate(results):
        body = result.output_text if result.succeeded else f"[FAILED: {result.output_text}]"
        blocks.append(f"=== Result {i + 1} ({result.variant_name} approach) ===\n{body}\n")
    return "\n".join(blocks)


def build_judge_prompt(task: str, results: Sequence[VariantResult]) -> str:
    n = len(results)
    return f"""You are analyzing the results of {n} different AI approaches to the same task.

ORIGINAL TASK: {task}

RESULTS FROM DIFFERENT APPROACHES:
{format_results(results)}

Please analyze these results and respond with a JSON object (and nothing else) in this exact format:
{{
    "bestResultIndex": <number 0-{max(n - 1, 0)} indicating which result was best>,
    "reasoning": "<explanation of why this result was best>",
    "wasPromptBetter": <true if the best result succeeded due to the prompt approach, false if it was just random/lucky>,
    "promptImprovements": ["<specific improvement 1>", "<specific improvement 2>"],
    "nextPromptSuggestions": ["<suggestion for better prompt 1>", "<suggestion for better prompt 2>"]
}}

Consider:
1. Which result most completely and accurately addresses the task?
2. Was the success due to the prompt strategy (step-by-step, expert role, etc.) or was it random?
3. What specific aspects of the winning prompt made it effective?
4. How can we improve the prompts for the next iteration?"""


def extract_json_object(text: str) -> str | None:
    """
    Return the first balanced ``{...}`` substring of ``text``, or None.

    Braces inside JSON string literals (including escaped quotes) do not count.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escape = False
    for i in range(start, len(text)):
        c = text[i]
        if escape:
            escape = False
            continue
        if c == "\\" and in_string:
            escape = True
            continue
        if c == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


class JudgeReply(BaseModel):
    """Wire shape of the judge's JSON answer."""

    model_config = ConfigDict(populate_by_name=True)

    best_result_index: StrictInt = Field(alias="bestResultIndex")
    reasoning: StrictStr = ""
    was_prompt_better: StrictBool = Field(alias="wasPromptBetter")
    prompt_improvements: list[StrictStr] = Field(default_factory=list, alias="promptImprovements")
    next_prompt_suggestions: list[StrictStr] = Field(default_factory=list, alias="nextPromptSuggestions")

    def to_verdict(self) -> Verdict:
        return Verdict(
            best_index=self.best_result_index,
            reasoning=self.reasoning,
            prompt_was_decisive=self.was_prompt_better,
            improvements=tuple(self.prompt_improvements),
            suggestions=tuple(self.next_prompt_suggestions),
        )


def parse_verdict(text: str, num_results: int) -> VerdictParse:
    candidate = extract_json_object(text)
    if candidate is None:
        return VerdictParse.fallback("no JSON object found in judge reply")

    try:
        data = json.loads(candidate)
    except (ValueError, RecursionError) as e:
        # ValueError covers JSONDecodeError and the int digit limit; RecursionError covers deep nesting
        return VerdictParse.fallback(f"invalid JSON in judge reply: {e}")

    if not isinstance(data, dict):
        return VerdictParse.fallback("judge reply is not a JSON object")

    try:
        reply = JudgeReply.model_validate(data)
    except ValidationError as e:
        return VerdictParse.fallback(f"judge reply failed validation: {e.error_count()} error(s)")

    if not 0 <= reply.best_result_index < num_results:
        return VerdictParse.fallback(
            f"bestResultIndex {reply.best_result_index} out of range for {num_results} result(s)"
        )
    return VerdictParse.success(reply.to_verdict())


class Judge:
    """Asks the gateway once per round which result was best."""

    def __init__(self, gateway: AgentGateway, *, timeout_seconds: float | None = None):
        self.gateway = gateway
        self.timeout_seconds = timeout_seconds

    async def evaluate(
        self,
        task: str,
        results: Sequence[VariantResult],
        cancel_token: CancellationToken | None = None,
    ) -> VerdictParse:
        prompt = build_judge_prompt(task, results)
        try:
            call = self.gateway.invoke(prompt, JUDGE_DESCRIPTION, cancel_token)
            if self.timeout_seconds is not None:
                reply = await asyncio.wait_for(call, timeout=self.timeout_seconds)
            else:
                reply = await call
            text = extract_text(reply)
        except asyncio.TimeoutError:
            return VerdictParse.fallback(f"judge timed out after {self.timeout_seconds}s")
        except Exception as e:
            return VerdictParse.fallback(f"judge invocation failed: {e}")
        return parse_verdict(text, len(results))
