"""Chat agent service.

``ChatAgent`` is what the API layer and the local runtime talk to. It
validates the request, builds the chat graph for the requested model, runs
or resumes a turn, and shapes the result into a ``ChatOutput`` or, when the
model asked for a human, an ``InterruptedChatOutput``.

Example:
    ```python
    agent = ChatAgent(settings, store)
    output = await agent.execute({"input_text": "What's in the orders table?"}, thread_id="t1")
    if isinstance(output, InterruptedChatOutput):
        output = await agent.resume_execution(output.metadata.thread_id, "Approved")
    ```
"""

from typing import Any, Callable, Dict, List, Literal, Optional, Sequence, Type, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from chatgraph.core.agent.provider import ModelProvider, create_provider
from chatgraph.core.config import LLMConfig, Settings
from chatgraph.core.errors import ThreadNotFoundError, ValidationError
from chatgraph.core.graph.base import Graph, RunResult, Suspended, ThreadConfig, create_chat_graph
from chatgraph.core.graph.checkpoint import CheckpointStore
from chatgraph.core.graph.state import ChatInput, InterruptRequest
from chatgraph.core.logging import get_logger, LogComponent
from chatgraph.core.tools import DEFAULT_TOOLS, ChatTool, ToolInvoker, ToolServices

logger = get_logger(LogComponent.AGENT)

ProviderFactory = Callable[[LLMConfig, Settings], ModelProvider]


class AgentMetadata(BaseModel):
    """Public description of a registered agent."""
    id: str
    name: str
    description: str
    version: str = "1.0.0"
    capabilities: List[str] = Field(default_factory=list)


class ChatRunMetadata(BaseModel):
    iterations: int
    message_count: int
    node_history: List[str]
    execution_time: float = Field(..., description="Seconds spent in this invocation")
    thread_id: Optional[str] = None


class ChatOutput(BaseModel):
    """A completed turn."""
    output_text: str
    metadata: ChatRunMetadata


class InterruptedChatOutput(BaseModel):
    """A turn waiting for a human response."""
    output_text: str
    is_interrupted: Literal[True] = True
    interrupt_request: InterruptRequest
    next_steps: List[str] = Field(default_factory=list)
    metadata: ChatRunMetadata


ChatResult = Union[ChatOutput, InterruptedChatOutput]


def validate_payload(model: Type[BaseModel], data: Any, label: str) -> Any:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {label}: {e}") from e


class ChatAgent:
    """Conversational agent backed by the chat graph.

    Attributes:
        settings: Process settings (API keys)
        store: Checkpoint store shared by every graph this agent builds
        provider_factory: Builds a model client for an ``LLMConfig``
        services: Collaborators handed to tools
        tools: Tool classes offered to the model
    """

    metadata = AgentMetadata(
        id="chat_agent",
        name="Chat Agent",
        description=(
            "A conversational AI agent that can engage in natural dialogue "
            "and assist with various tasks"
        ),
        capabilities=[
            "Natural conversation",
            "Question answering",
            "Analysis and writing",
            "Problem solving",
            "Web search integration",
            "Database queries",
            "Human-in-the-loop assistance",
        ],
    )

    def __init__(
        self,
        settings: Settings,
        store: CheckpointStore,
        provider_factory: Optional[ProviderFactory] = None,
        services: Optional[ToolServices] = None,
        tools: Optional[Sequence[Type[ChatTool]]] = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.provider_factory = provider_factory or create_provider
        self.services = services or ToolServices()
        self.tools = list(DEFAULT_TOOLS if tools is None else tools)

    def get_metadata(self) -> AgentMetadata:
        return self.metadata

    def build_graph(self, llm_config: Optional[LLMConfig] = None) -> Graph:
        """Build the chat graph for a model configuration."""
        llm_config = llm_config or LLMConfig()
        provider = self.provider_factory(llm_config, self.settings)
        invoker = ToolInvoker(self.tools, self.services)
        return create_chat_graph(provider, invoker, self.store, llm_config)

    def get_graph_metadata(self) -> Dict[str, Any]:
        return self.build_graph().get_metadata()

    async def execute(
        self,
        chat_input: Union[ChatInput, Dict[str, Any]],
        config: Union[LLMConfig, Dict[str, Any], None] = None,
        thread_id: Optional[str] = None,
    ) -> ChatResult:
        """Run one turn.

        Raises:
            ValidationError: If the input or model configuration is malformed
            ThreadInterruptedError: If the thread is waiting for a human response
            ProviderError: If the model call fails
        """
        chat_input = validate_payload(ChatInput, chat_input, "chat input")
        llm_config = validate_payload(LLMConfig, config or {}, "model configuration")

        logger.info(f"Executing chat agent ({llm_config.model}): {chat_input.input_text[:100]}")
        graph = self.build_graph(llm_config)
        result = await graph.invoke(chat_input, ThreadConfig(thread_id=thread_id), llm_config)
        return self._format(result)

    async def resume_execution(self, thread_id: str, human_response: str) -> ChatResult:
        """Resume a suspended thread with the human's answer, using the thread's model.

        Raises:
            ThreadNotFoundError: If the thread has no suspended checkpoint
        """
        checkpoint = await self.store.get(thread_id)
        if checkpoint is None:
            raise ThreadNotFoundError(thread_id)

        llm_config = LLMConfig.model_validate(checkpoint.state.llm_config or {})
        logger.info(f"Resuming thread {thread_id} ({llm_config.model})")
        graph = self.build_graph(llm_config)
        result = await graph.resume(thread_id, human_response)
        return self._format(result)

    @staticmethod
    def _format(result: RunResult) -> ChatResult:
        state = result.state
        metadata = ChatRunMetadata(
            iterations=state.iteration_count,
            message_count=len(state.messages),
            node_history=list(state.node_history),
            execution_time=state.execution_time,
            thread_id=state.thread_id,
        )

        if isinstance(result, Suspended):
            request = result.interrupt
            logger.info(f"Turn suspended on thread {state.thread_id}: {request.request_type}")
            return InterruptedChatOutput(
                output_text=f"Human assistance requested: {request.message}",
                interrupt_request=request,
                next_steps=[
                    "Review the request and provide a response",
                    (
                        "POST your answer to "
                        f"/api/interrupts/agents/chat_agent/threads/{state.thread_id}/resume"
                    ),
                ],
                metadata=metadata,
            )

        return ChatOutput(output_text=state.output_text, metadata=metadata)
