# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

from subagent_optimizer.core.records import RoundRecord, VariantResult, Verdict
from subagent_optimizer.core.report import (
    NO_DOMINANT_STRATEGY,
    build_report,
    dominant_strategy,
    fenced,
    key_learnings,
    preview,
)

NAMES = ["Direct", "Step-by-Step", "Expert Role", "Structured Output", "Critical Thinking"]


def _record(round_number, best, decisive=True, improvements=(), outputs=None, reasoning="because"):
    outputs = outputs or [f"out {round_number}.{i}" for i in range(5)]
    results = tuple(
        VariantResult(variant_name=NAMES[i], prompt_sent=f"prompt {round_number}.{i}", output_text=o, succeeded=True)
        for i, o in enumerate(outputs)
    )
    verdict = Verdict(best, reasoning, decisive, tuple(improvements), ())
    return RoundRecord(round_number=round_number, results=results, verdict=verdict)


def test_per_round_sections():
    report = build_report("Summarize", [_record(1, 2, improvements=["Be brief"]), _record(2, 0, decisive=False)])
    md = report.markdown

    assert md.startswith("# Prompt Optimization Report\n")
    assert "**Original Task:** Summarize" in md
    assert "**Total Iterations:** 2" in md
    assert "## Iteration 1\n\n**Best Approach:** Expert Role" in md
    assert "**Reasoning:** because" in md
    assert "**Prompt was the key factor:** Yes" in md
    assert "**Prompt was the key factor:** No (likely random/luck)" in md
    assert "**Improvements identified:**\n- Be brief" in md
    assert md.count("**Improvements identified:**") == 1
    assert "**Best Result Preview:**\n```\nout 1.2\n```" in md


def test_preview_truncation():
    long_output = "x" * 600
    report = build_report("T", [_record(1, 0, outputs=[long_output] + ["o"] * 4)])

    assert "```\n" + "x" * 500 + "...[truncated]\n```" in report.markdown
    # the deliverable is never truncated
    assert report.best_output == long_output
    assert report.markdown.rstrip().endswith(long_output + "\n```")


def test_preview_at_limit_is_not_marked():
    assert preview("y" * 500, 500) == "y" * 500
    assert preview("y" * 501, 500) == "y" * 500 + "...[truncated]"


def test_dominant_strategy_counts_only_decisive_rounds():
    history = [
        _record(1, 1, decisive=False),
        _record(2, 1, decisive=False),
        _record(3, 4),
    ]
    assert dominant_strategy(history) == ("Critical Thinking", 1)
    assert "**Most effective prompt approach:** Critical Thinking (won 1 time(s))" in build_report("T", history).markdown


def test_dominant_strategy_tie_goes_to_first_winner():
    history = [_record(1, 3), _record(2, 0), _record(3, 0), _record(4, 3)]
    assert dominant_strategy(history) == ("Structured Output", 2)


def test_no_decisive_round_states_no_dominant_strategy():
    report = build_report("T", [_record(1, 2, decisive=False)])
    assert report.dominant_strategy is None
    assert report.dominant_wins == 0
    assert NO_DOMINANT_STRATEGY in report.markdown
    assert "Most effective prompt approach" not in report.markdown


def test_key_learnings_deduplicated_in_first_occurrence_order():
    history = [
        _record(1, 0, improvements=["b", "a"]),
        _record(2, 0, improvements=["a", "c", "b"]),
    ]
    assert key_learnings(history) == ("b", "a", "c")
    assert "**Key learnings:**\n- b\n- a\n- c" in build_report("T", history).markdown


def test_final_round_best_is_the_deliverable():
    history = [_record(1, 1), _record(2, 3)]
    report = build_report("T", history)

    assert report.best_variant_name == "Structured Output"
    assert report.best_prompt == "prompt 2.3"
    assert report.best_output == "out 2.3"
    assert "## Best Prompt (Final Delegation Instruction)\n\nThe most effective prompt found through optimization:" in (
        report.markdown
    )
    assert "## Final Best Result\n\n```\nout 2.3\n```" in report.markdown


def test_out_of_range_index_uses_first_result():
    report = build_report("T", [_record(1, 9)])
    assert report.best_output == "out 1.0"
    assert "**Best Approach:** Direct" in report.markdown


def test_empty_history():
    report = build_report("T", [])
    assert report.rounds_completed == 0
    assert report.best_prompt is None
    assert report.best_output is None
    assert "**Total Iterations:** 0" in report.markdown
    assert "No iterations completed" in report.markdown
    assert "## Final Best Result" not in report.markdown


def test_report_is_deterministic():
    history = [_record(1, 1, improvements=["x"]), _record(2, 2)]
    assert build_report("T", history) == build_report("T", history)


def test_fence_outgrows_backticks_in_content():
    content = "Here:\n```python\nprint(1)\n```"
    assert fenced(content) == "````\n" + content + "\n````"
    assert fenced("plain") == "```\nplain\n```"
