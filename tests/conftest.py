# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

import json
import re

import pytest

from subagent_optimizer.core.judge import JUDGE_DESCRIPTION

_SUBAGENT_DESCRIPTION = re.compile(r"^Subagent (\d+): ")


def judge_json(best=0, reasoning="clear", decisive=True, improvements=(), suggestions=()):
    return json.dumps(
        {
            "bestResultIndex": best,
            "reasoning": reasoning,
            "wasPromptBetter": decisive,
            "promptImprovements": list(improvements),
            "nextPromptSuggestions": list(suggestions),
        }
    )


class ScriptedGateway:
    """Fake gateway answering subagents and the judge from scripts.

    - ``variant_reply(round_number, index, prompt)`` returns the subagent output, or raises.
    - ``judge_replies`` is consumed one entry per round; an Exception instance is raised.
    """

    def __init__(self, variant_reply=None, judge_replies=None):
        self.variant_reply = variant_reply or (lambda rnd, idx, prompt: f"output {rnd}.{idx}")
        self.judge_replies = list(judge_replies or [])
        self.calls = []
        self.judge_calls = 0

    async def invoke(self, prompt, description, cancel_token=None):
        self.calls.append((description, prompt))
        if description == JUDGE_DESCRIPTION:
            self.judge_calls += 1
            reply = self.judge_replies.pop(0) if self.judge_replies else judge_json()
            if isinstance(reply, Exception):
                raise reply
            return reply
        match = _SUBAGENT_DESCRIPTION.match(description)
        assert match, description
        return self.variant_reply(self.judge_calls + 1, int(match.group(1)) - 1, prompt)


@pytest.fixture
def gateway():
    return ScriptedGateway()


@pytest.fixture
def make_gateway():
    return ScriptedGateway


@pytest.fixture
def judge_reply():
    return judge_json
