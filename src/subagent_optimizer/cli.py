# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

"""
Command-line entry point.

Example:
    subagent-optimizer "Summarize the attached RFC" --iterations 3 --model openai/gpt-4o-mini
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from subagent_optimizer.api import OptimizerParameters, invocation_message, optimize
from subagent_optimizer.config import OptimizerConfig
from subagent_optimizer.core.callbacks import LoggingCallback
from subagent_optimizer.gateways.litellm_gateway import LiteLLMGateway
from subagent_optimizer.utils.stop_condition import FileStopper, SignalStopper


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="subagent-optimizer",
        description="Run a task through several prompt strategies in parallel, judge them, and evolve the prompts.",
    )
    parser.add_argument("task", help="Task every subagent should perform")
    parser.add_argument("--iterations", type=int, default=None, help="Number of optimization rounds")
    context = parser.add_mutually_exclusive_group()
    context.add_argument("--context", default=None, help="Background prepended to every prompt")
    context.add_argument("--context-file", type=Path, default=None, help="Read the context from a file")
    parser.add_argument("--model", default=None, help="LiteLLM model name")
    parser.add_argument("--temperature", type=float, default=None)
    parser.add_argument("--timeout", type=float, default=None, help="Per-invocation timeout in seconds")
    parser.add_argument("--stop-file", default=None, help="Stop before the next round once this file exists")
    parser.add_argument("--output", type=Path, default=None, help="Write the report here instead of stdout")
    parser.add_argument("--log-level", default=None, help="Logging level (default: INFO)")
    parser.add_argument("--json", action="store_true", help="Emit the full result as JSON")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    context = args.context
    if args.context_file is not None:
        try:
            context = args.context_file.read_text(encoding="utf-8")
        except OSError as e:
            parser.error(f"cannot read --context-file: {e}")

    try:
        config = OptimizerConfig.from_env(
            model=args.model,
            temperature=args.temperature,
            invoke_timeout_seconds=args.timeout,
            log_level=args.log_level,
        )
        params = OptimizerParameters(task=args.task, iterations=args.iterations, context=context)
        message = invocation_message(params, config)
    except ValueError as e:
        parser.error(str(e))

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    print(message["invocation_message"], file=sys.stderr)

    stoppers = [SignalStopper()]
    if args.stop_file:
        stoppers.append(FileStopper(args.stop_file))

    try:
        result = optimize(
            params.task,
            LiteLLMGateway(config.model_config()),
            iterations=params.iterations,
            context=params.context,
            config=config,
            callbacks=[LoggingCallback()],
            stop_callbacks=stoppers,
        )
    finally:
        stoppers[0].cleanup()

    output = json.dumps(result.to_dict(), indent=2) if args.json else result.markdown
    if args.output is not None:
        args.output.write_text(output, encoding="utf-8")
    else:
        sys.stdout.write(output)
        if not output.endswith("\n"):
            sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
