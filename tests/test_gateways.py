# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

import asyncio
import sys
import types
from unittest.mock import Mock

import pytest

from subagent_optimizer.gateways.base import AgentGateway, CallableGateway, extract_text
from subagent_optimizer.gateways.litellm_gateway import LiteLLMGateway, ModelConfig


def _response(content):
    return Mock(choices=[Mock(message=Mock(content=content))])


@pytest.fixture
def fake_acompletion(monkeypatch):
    calls = []
    reply = {"content": "model says hi"}

    async def acompletion(**kwargs):
        calls.append(kwargs)
        if isinstance(reply["content"], Exception):
            raise reply["content"]
        return _response(reply["content"])

    import litellm

    monkeypatch.setattr(litellm, "acompletion", acompletion)
    return types.SimpleNamespace(calls=calls, reply=reply)


def test_extract_text():
    assert extract_text("plain") == "plain"
    assert extract_text({"text": "inside"}) == "inside"
    assert extract_text({"text": None}) == ""
    with pytest.raises(TypeError):
        extract_text({"output": "x"})
    with pytest.raises(TypeError):
        extract_text(None)


def test_callable_gateway_sync_and_async():
    async def shout(prompt):
        return prompt.upper()

    sync_gateway = CallableGateway(lambda prompt: prompt[::-1])
    async_gateway = CallableGateway(shout)

    assert asyncio.run(sync_gateway.invoke("abc", "desc")) == "cba"
    assert asyncio.run(async_gateway.invoke("abc", "desc")) == "ABC"
    assert isinstance(sync_gateway, AgentGateway)


def test_callable_gateway_awaits_async_call_objects():
    class AsyncAgent:
        async def __call__(self, prompt):
            return f"agent: {prompt}"

    assert asyncio.run(CallableGateway(AsyncAgent()).invoke("hi", "desc")) == "agent: hi"


def test_callable_gateway_awaits_returned_awaitables():
    async def answer(prompt):
        return prompt * 2

    gateway = CallableGateway(lambda prompt: answer(prompt))
    assert asyncio.run(gateway.invoke("ab", "desc")) == "abab"


def test_litellm_gateway_builds_request(fake_acompletion):
    gateway = LiteLLMGateway(ModelConfig("openai/gpt-4o-mini", temperature=0.3, max_tokens=256))
    text = asyncio.run(gateway.invoke("Do the thing", "Subagent 1: Direct approach"))

    assert text == "model says hi"
    assert fake_acompletion.calls == [
        {
            "model": "openai/gpt-4o-mini",
            "messages": [{"role": "user", "content": "Do the thing"}],
            "metadata": {"description": "Subagent 1: Direct approach"},
            "max_tokens": 256,
            "temperature": 0.3,
        }
    ]


def test_litellm_gateway_accepts_model_name(fake_acompletion):
    gateway = LiteLLMGateway("openai/gpt-4o-mini")
    asyncio.run(gateway.invoke("p", "d"))
    assert "temperature" not in fake_acompletion.calls[0]
    assert "max_tokens" not in fake_acompletion.calls[0]


def test_litellm_gateway_empty_content(fake_acompletion):
    fake_acompletion.reply["content"] = None
    assert asyncio.run(LiteLLMGateway("m").invoke("p", "d")) == ""


def test_litellm_gateway_propagates_errors(fake_acompletion):
    fake_acompletion.reply["content"] = RuntimeError("401 unauthorized")
    with pytest.raises(RuntimeError, match="401"):
        asyncio.run(LiteLLMGateway("m").invoke("p", "d"))


def test_litellm_is_imported_lazily():
    assert "subagent_optimizer.gateways.litellm_gateway" in sys.modules
    assert not hasattr(sys.modules["subagent_optimizer.gateways.litellm_gateway"], "acompletion")
