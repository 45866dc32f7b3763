# Copyright (c) 2025 Lakshya A Agrawal and the GEPA contributors
# https://github.com/gepa-ai/gepa

"""
The agent capability the optimizer drives.

Gateways accept a prompt plus a short human-readable description of the call and return
text. They may fail or be cancelled; the optimizer never depends on which model backs them.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

if TYPE_CHECKING:
    from subagent_optimizer.utils.stop_condition import CancellationToken


@runtime_checkable
class AgentGateway(Protocol):
    async def invoke(
        self,
        prompt: str,
        description: str,
        cancel_token: CancellationToken | None = None,
    ) -> str | dict[str, Any]:
        """
        Run ``prompt`` on the underlying agent and return its reply.

        The reply is either the output text or a dict carrying it under ``"text"``.
        Errors propagate; callers turn them into variant or judge failures.
        """
        ...


def extract_text(reply: Any) -> str:
    if isinstance(reply, str):
        return reply
    if isinstance(reply, dict) and "text" in reply:
        text = reply["text"]
        return "" if text is None else str(text)
    raise TypeError(f"Gateway reply must be a str or a dict with a 'text' key, got {type(reply).__name__}")


class CallableGateway:
    """Adapts a plain ``fn(prompt) -> str`` to the gateway protocol.

    ``fn`` may be sync, async, an object with an async ``__call__``, or a sync callable returning an awaitable.
    """

    def __init__(self, fn: Callable[[str], Any]):
        self.fn = fn

    async def invoke(
        self,
        prompt: str,
        description: str,
        cancel_token: CancellationToken | None = None,
    ) -> str | dict[str, Any]:
        if inspect.iscoroutinefunction(self.fn) or inspect.iscoroutinefunction(getattr(self.fn, "__call__", None)):
            return await self.fn(prompt)
        reply = await asyncio.to_thread(self.fn, prompt)
        # sync wrappers around async code hand back an awaitable
        if inspect.isawaitable(reply):
            reply = await reply
        return reply
