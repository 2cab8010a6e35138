"""Tool invocation layer.

Given the tool calls a model requested, the ``ToolInvoker`` resolves each name
against its registry, validates the arguments, and runs the tools
concurrently. Results come back in request order, whatever order the tools
finish in.

A failing tool never aborts the turn: unknown names, bad arguments and
exceptions become a ``ToolResult`` with ``is_error=True`` and a user-safe
message, so the model can react. The human-assistance tool is the one
exception to "every call yields text": it returns a ``HumanInputRequest``,
which the caller turns into a suspension instead of a tool message.
"""

import asyncio
from typing import Dict, List, Literal, Optional, Sequence, Type, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from chatgraph.core.errors import ToolExecutionError
from chatgraph.core.graph.state import InterruptRequest, ToolCall, ToolMessage
from chatgraph.core.logging import get_logger, LogComponent, log_tool
from chatgraph.core.tools.base import ChatTool, ToolServices

logger = get_logger(LogComponent.TOOLS)


class ToolResult(BaseModel):
    """Text outcome of one tool call (success or synthesized error)."""
    kind: Literal["result"] = "result"
    tool_call_id: str
    name: str
    content: str
    is_error: bool = False

    def to_message(self) -> ToolMessage:
        return ToolMessage(content=self.content, tool_call_id=self.tool_call_id, name=self.name)


class HumanInputRequest(BaseModel):
    """A tool call that asks to suspend the turn for human input."""
    kind: Literal["human_input"] = "human_input"
    tool_call_id: str
    name: str
    request: InterruptRequest


ToolOutcome = Union[ToolResult, HumanInputRequest]


def tool_error_message(name: str) -> str:
    return f"I apologize, but I encountered an error while running {name}. Please try again."


class ToolInvoker:
    """Runs model-requested tool calls against a registry of tools.

    Attributes:
        tools: Registered tool classes keyed by tool name
        services: Collaborators passed to every tool call
    """

    def __init__(
        self,
        tools: Optional[Sequence[Type[ChatTool]]] = None,
        services: Optional[ToolServices] = None,
    ) -> None:
        self.tools: Dict[str, Type[ChatTool]] = {}
        self.services = services or ToolServices()
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: Type[ChatTool]) -> None:
        """Register a tool class under its tool name."""
        name = tool._name()
        self.tools[name] = tool
        logger.debug(f"Registered tool: {name}")

    @property
    def descriptors(self) -> List[Type[ChatTool]]:
        """Tool classes to bind to the model."""
        return list(self.tools.values())

    async def invoke(self, call: ToolCall) -> ToolOutcome:
        """Run a single tool call, containing any failure."""
        tool_type = self.tools.get(call.name)
        if tool_type is None:
            logger.warning(f"Model requested unknown tool: {call.name}")
            return ToolResult(
                tool_call_id=call.id,
                name=call.name,
                content=f"Unknown tool: {call.name}",
                is_error=True,
            )

        try:
            tool = tool_type.model_validate(call.args)
        except PydanticValidationError as e:
            logger.warning(f"Invalid arguments for tool {call.name}: {e}")
            return ToolResult(
                tool_call_id=call.id,
                name=call.name,
                content=f"Invalid arguments for {call.name}: {e.error_count()} validation error(s).",
                is_error=True,
            )

        log_tool(logger, f"[Calling Tool '{call.name}' with args {call.args}]")
        try:
            output = await tool.call(self.services)
        except Exception as e:
            error = e if isinstance(e, ToolExecutionError) else ToolExecutionError(call.name, str(e))
            logger.error(str(error))
            return ToolResult(
                tool_call_id=call.id,
                name=call.name,
                content=tool_error_message(call.name),
                is_error=True,
            )

        if isinstance(output, InterruptRequest):
            logger.info(f"Tool {call.name} requested human input ({output.request_type})")
            return HumanInputRequest(tool_call_id=call.id, name=call.name, request=output)

        logger.debug(f"Tool {call.name} result: {output}")
        return ToolResult(tool_call_id=call.id, name=call.name, content=str(output))

    async def invoke_all(self, calls: Sequence[ToolCall]) -> List[ToolOutcome]:
        """Run tool calls concurrently and return outcomes in request order."""
        if not calls:
            return []
        return list(await asyncio.gather(*(self.invoke(call) for call in calls)))
