"""Model node: one model round-trip, including any tools it asks for.

Processing Flow:
    1. If the last AI message still has unanswered tool calls, run them and
       make a follow-up model call with the results
    2. If the history ends with a tool result (a resumed round), make only the
       follow-up model call
    3. Otherwise call the model; when it requests tools, run them concurrently
       and make a follow-up call with the results

A request for human assistance stops the round: the node returns an
``Interrupt`` carrying the messages produced so far and the pending request,
without a final model response and without counting an iteration.
"""

from typing import List, Optional, Sequence

from chatgraph.core.agent.provider import ModelProvider
from chatgraph.core.graph.nodes.base.node import Interrupt, Node, NodeOutcome, Proceed
from chatgraph.core.graph.state import (
    AIMessage,
    ConversationState,
    Message,
    PendingInterrupt,
    StateUpdate,
    ToolCall,
    ToolMessage,
)
from chatgraph.core.logging import get_logger, LogComponent, log_agent
from chatgraph.core.tools.invoker import HumanInputRequest, ToolInvoker, ToolResult

logger = get_logger(LogComponent.NODES)

SECOND_HUMAN_REQUEST_MESSAGE = (
    "Only one human assistance request can be pending at a time. "
    "Ask again after the current request is answered."
)


class CallModelNode(Node):
    """Calls the model and runs the tools it requests.

    Attributes:
        provider: Model client
        invoker: Tool registry and executor
    """
    id: str = "call_model"
    description: str = "Invoke the language model, running any requested tools"
    provider: ModelProvider
    invoker: ToolInvoker

    async def process(self, state: ConversationState) -> NodeOutcome:
        history: List[Message] = list(state.messages)
        new_messages: List[Message] = []

        outstanding = state.unanswered_tool_calls()
        if outstanding:
            interrupt = await self._run_tools(outstanding, history, new_messages)
            if interrupt:
                return interrupt
        elif not (history and isinstance(history[-1], ToolMessage)):
            response = await self._invoke(history)
            history.append(response)
            new_messages.append(response)
            if not response.tool_calls:
                return self._proceed(state, new_messages)

            interrupt = await self._run_tools(response.tool_calls, history, new_messages)
            if interrupt:
                return interrupt

        follow_up = await self._invoke(history)
        new_messages.append(follow_up)
        return self._proceed(state, new_messages)

    async def _invoke(self, history: Sequence[Message]) -> AIMessage:
        response = await self.provider.invoke(history, self.invoker.descriptors)
        if response.tool_calls:
            logger.info(
                "Model requested tools: "
                + ", ".join(f"{call.name}({call.args})" for call in response.tool_calls)
            )
        else:
            log_agent(logger, response.content)
        return AIMessage(content=response.content, tool_calls=response.tool_calls)

    async def _run_tools(
        self,
        calls: Sequence[ToolCall],
        history: List[Message],
        new_messages: List[Message],
    ) -> Optional[Interrupt]:
        """Run tool calls, appending their results in request order.

        Returns an ``Interrupt`` if one of the calls asked for a human.
        """
        outcomes = await self.invoker.invoke_all(calls)

        human: Optional[HumanInputRequest] = None
        answered: List[ToolMessage] = []
        deferred: List[ToolMessage] = []
        for outcome in outcomes:
            if isinstance(outcome, HumanInputRequest):
                if human is None:
                    human = outcome
                    continue
                outcome = ToolResult(
                    tool_call_id=outcome.tool_call_id,
                    name=outcome.name,
                    content=SECOND_HUMAN_REQUEST_MESSAGE,
                    is_error=True,
                )
            (deferred if human else answered).append(outcome.to_message())

        history.extend(answered)
        new_messages.extend(answered)
        if human is None:
            return None

        logger.info(f"Suspending for human assistance (call {human.tool_call_id})")
        return Interrupt(
            update=StateUpdate(messages=new_messages),
            pending=PendingInterrupt(
                request=human.request,
                tool_call_id=human.tool_call_id,
                tool_name=human.name,
                deferred_messages=deferred,
            ),
        )

    @staticmethod
    def _proceed(state: ConversationState, new_messages: List[Message]) -> Proceed:
        return Proceed(update=StateUpdate(
            messages=new_messages,
            iteration_count=state.iteration_count + 1,
        ))
