"""Test doubles shared across the chatgraph test suite.

The scripted provider stands in for a real model: each ``invoke`` pops the
next canned ``ModelResponse`` (or raises it, if it is an exception) and
records the messages and tools it was called with.
"""

import asyncio
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Union

from chatgraph.core.agent.provider import ModelResponse
from chatgraph.core.graph.state import ToolCall
from chatgraph.core.tools import ChatTool, ToolServices


class ScriptedProvider:
    """ModelProvider that replays canned responses in order."""

    def __init__(self, responses: Optional[Sequence[Union[ModelResponse, Exception]]] = None):
        self.responses: List[Union[ModelResponse, Exception]] = list(responses or [])
        self.calls: List[Dict[str, Any]] = []

    def queue(self, *responses: Union[ModelResponse, Exception]) -> None:
        self.responses.extend(responses)

    async def invoke(self, messages, tools) -> ModelResponse:
        self.calls.append({"messages": list(messages), "tools": list(tools)})
        if not self.responses:
            raise AssertionError("ScriptedProvider has no responses left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeSearch:
    """Search client returning a fixed string per query."""

    def __init__(self) -> None:
        self.queries: List[str] = []

    async def search(self, query: str) -> str:
        self.queries.append(query)
        return f"results for {query}"


class EchoTool(ChatTool):
    """Echo the given text back, optionally after a delay."""

    tool_name: ClassVar[str] = "echo"

    text: str
    delay: float = 0.0

    async def call(self, services: ToolServices) -> str:
        if self.delay:
            await asyncio.sleep(self.delay)
        return f"echo: {self.text}"


class FailingTool(ChatTool):
    """A tool that always raises."""

    tool_name: ClassVar[str] = "fail"

    async def call(self, services: ToolServices) -> str:
        raise RuntimeError("boom")


def reply(text: str) -> ModelResponse:
    """A model response with no tool calls."""
    return ModelResponse(content=text)


def call(call_id: str, name: str, **args: Any) -> ToolCall:
    return ToolCall(id=call_id, name=name, args=args)


def tool_request(*calls: ToolCall, content: str = "") -> ModelResponse:
    """A model response requesting the given tool calls."""
    return ModelResponse(content=content, tool_calls=list(calls))


def echo(call_id: str, text: str, delay: float = 0.0) -> ToolCall:
    args: Dict[str, Any] = {"text": text}
    if delay:
        args["delay"] = delay
    return ToolCall(id=call_id, name="echo", args=args)


def ask_human(call_id: str, message: str, request_type: str = "approval", **extra: Any) -> ToolCall:
    return ToolCall(
        id=call_id,
        name="request_human_assistance",
        args={"request_type": request_type, "message": message, **extra},
    )
