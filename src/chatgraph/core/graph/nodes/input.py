"""Input node: turns the user's request into conversation messages."""

from typing import List

from chatgraph.core.agent.prompts import format_system_message
from chatgraph.core.graph.nodes.base.node import Node, NodeOutcome, Proceed
from chatgraph.core.graph.state import (
    ConversationState,
    HumanMessage,
    Message,
    StateUpdate,
    SystemMessage,
    ToolMessage,
)
from chatgraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.NODES)

UNANSWERED_TOOL_CALL_MESSAGE = "Tool call was not executed before the turn ended."


class InputNode(Node):
    """Starts a turn.

    A new thread gets the system message first; an existing thread keeps its
    original one. The iteration counter is reset for the new turn.
    """
    id: str = "input"
    description: str = "Build system and human messages from the user input"

    async def process(self, state: ConversationState) -> NodeOutcome:
        messages: List[Message] = []

        if not state.has_system_message():
            system_prompt = (state.llm_config or {}).get("system_prompt")
            messages.append(SystemMessage(
                content=format_system_message(state.input.extra_context, system_prompt)
            ))

        # A previous turn that hit the iteration cap can leave tool calls without results
        for call in state.unanswered_tool_calls():
            logger.debug(f"Closing unanswered tool call {call.id} ({call.name})")
            messages.append(ToolMessage(
                content=UNANSWERED_TOOL_CALL_MESSAGE,
                tool_call_id=call.id,
                name=call.name,
            ))

        messages.append(HumanMessage(content=state.input.input_text))
        return Proceed(update=StateUpdate(messages=messages, iteration_count=0))
