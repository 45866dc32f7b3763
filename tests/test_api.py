# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

import asyncio
import json

import pytest

from subagent_optimizer import CallableGateway, LoggingCallback, OptimizerConfig, optimize, optimize_async
from subagent_optimizer.api import OptimizerParameters, invocation_message
from subagent_optimizer.core.engine import OptimizationEngine
from subagent_optimizer.strategies.variants import PromptVariant


# =============================================================================
# Parameters
# =============================================================================


def test_from_mapping_valid():
    params = OptimizerParameters.from_mapping({"task": "Write docs", "iterations": 4, "context": "repo"})
    assert params == OptimizerParameters("Write docs", 4, "repo")


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"task": ""},
        {"task": "   "},
        {"task": 3},
        {"task": "t", "iterations": "3"},
        {"task": "t", "iterations": 2.5},
        {"task": "t", "iterations": True},
        {"task": "t", "iterations": 0},
        {"task": "t", "iterations": -3},
        {"task": "t", "context": ["a"]},
        ["task", "t"],
    ],
)
def test_from_mapping_invalid(data):
    with pytest.raises(ValueError):
        OptimizerParameters.from_mapping(data)


def test_from_mapping_checks_upper_bound_against_config():
    config = OptimizerConfig(max_iterations=5)
    assert OptimizerParameters.from_mapping({"task": "t", "iterations": 5}, config).iterations == 5
    with pytest.raises(ValueError):
        OptimizerParameters.from_mapping({"task": "t", "iterations": 6}, config)
    with pytest.raises(ValueError):
        OptimizerParameters.from_mapping({"task": "t", "iterations": 0})


def test_iterations_resolved_against_config():
    config = OptimizerConfig(iterations=4, max_iterations=6)
    assert OptimizerParameters("t").resolve_iterations(config) == 4
    assert OptimizerParameters("t", 6).resolve_iterations(config) == 6
    with pytest.raises(ValueError):
        OptimizerParameters("t", 7).resolve_iterations(config)
    with pytest.raises(ValueError):
        OptimizerParameters("t", 0).resolve_iterations(config)


def test_invocation_message():
    task = "a" * 150
    message = invocation_message(OptimizerParameters(task, 2))

    assert message["invocation_message"] == (
        "Running prompt optimization with 2 iteration(s), each with 5 parallel subagents..."
    )
    assert "This will run **2** optimization loop(s), each executing **5 subagents** in parallel." in message["message"]
    assert f"**Task:** {'a' * 100}...\n" in message["message"]


def test_invocation_message_uses_default_iterations():
    message = invocation_message(OptimizerParameters("short task"))
    assert "with 3 iteration(s)" in message["invocation_message"]
    assert "**Task:** short task\n" in message["message"]


# =============================================================================
# optimize / optimize_async
# =============================================================================


def test_optimize_sync_wrapper(gateway):
    result = optimize("Summarize this text", gateway, iterations=2, callbacks=[])
    assert result.rounds_completed == 2
    assert result.iterations_requested == 2
    assert result.markdown.startswith("# Prompt Optimization Report")
    json.dumps(result.to_dict())


def test_default_iterations_come_from_config(gateway):
    result = optimize("t", gateway, config=OptimizerConfig(iterations=1), callbacks=[])
    assert result.rounds_completed == 1


def test_invalid_parameters_raise_before_any_call(gateway):
    with pytest.raises(ValueError):
        optimize("", gateway)
    with pytest.raises(ValueError):
        optimize("t", gateway, iterations=21)
    with pytest.raises(ValueError):
        optimize("t", gateway, variants=[])
    assert gateway.calls == []


def test_context_reaches_every_prompt(gateway):
    optimize("t", gateway, iterations=1, context="shared background", callbacks=[])
    subagent_prompts = [p for d, p in gateway.calls if d.startswith("Subagent")]
    assert len(subagent_prompts) == 5
    assert all(p.startswith("Context: shared background\n\n") for p in subagent_prompts)


def test_custom_variants(gateway):
    variants = [PromptVariant("Terse", lambda task, context=None: f"{task}. Be terse.")]
    result = optimize("t", gateway, iterations=1, variants=variants, callbacks=[])
    assert [r.variant_name for r in result.history[0].results] == ["Terse"]


def test_logging_callback_installed_by_default(gateway, monkeypatch):
    seen = {}
    original_init = OptimizationEngine.__init__

    def spy(self, gw, **kwargs):
        seen["callbacks"] = kwargs["callbacks"]
        original_init(self, gw, **kwargs)

    monkeypatch.setattr(OptimizationEngine, "__init__", spy)
    optimize("t", gateway, iterations=1)
    assert [type(c) for c in seen["callbacks"]] == [LoggingCallback]


def test_timeout_from_config():
    class Hanging:
        async def invoke(self, prompt, description, cancel_token=None):
            await asyncio.sleep(5)

    result = optimize(
        "t", Hanging(), iterations=1, config=OptimizerConfig(invoke_timeout_seconds=0.05), callbacks=[]
    )
    assert all(not r.succeeded for r in result.history[0].results)
    assert result.history[0].verdict.best_index == 0


def test_optimize_async_with_callable_gateway():
    def agent(prompt):
        if "Analysis" in prompt or "analyzing the results" in prompt:
            return '{"bestResultIndex": 1, "reasoning": "ok", "wasPromptBetter": false}'
        return "done"

    result = asyncio.run(optimize_async("t", CallableGateway(agent), iterations=1, callbacks=[]))
    assert result.history[0].verdict.best_index == 1
    assert result.report.dominant_strategy is None
