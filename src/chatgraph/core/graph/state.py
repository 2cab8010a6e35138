"""State management for the conversation graph.

This module provides:
1. Message variants: a closed set of message types discriminated on ``role``
2. ToolCall / InterruptRequest / PendingInterrupt: tool and suspension payloads
3. StateUpdate: the partial update a node returns
4. ConversationState: the state a single invocation owns and the engine mutates
"""

from typing import Annotated, Dict, Any, List, Optional, Union, Literal
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from chatgraph.core.errors import WorkflowError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NodeStatus(str, Enum):
    """Node execution status."""
    RUNNING = "running"
    COMPLETED = "completed"
    SUSPENDED = "suspended"
    ERROR = "error"


class ToolCall(BaseModel):
    """A tool invocation requested by the model."""
    id: str
    name: str
    args: Dict[str, Any] = Field(default_factory=dict)


class SystemMessage(BaseModel):
    role: Literal["system"] = "system"
    content: str


class HumanMessage(BaseModel):
    role: Literal["human"] = "human"
    content: str


class AIMessage(BaseModel):
    role: Literal["ai"] = "ai"
    content: str = ""
    tool_calls: List[ToolCall] = Field(default_factory=list)


class ToolMessage(BaseModel):
    role: Literal["tool"] = "tool"
    content: str
    tool_call_id: str
    name: Optional[str] = None


Message = Annotated[
    Union[SystemMessage, HumanMessage, AIMessage, ToolMessage],
    Field(discriminator="role"),
]


class ChatInput(BaseModel):
    """The user's request for one turn."""
    input_text: str = Field(..., min_length=1)
    extra_context: Optional[str] = None


class InterruptRequest(BaseModel):
    """A request for human assistance raised by the model."""
    type: Literal["human_assistance"] = "human_assistance"
    request_type: Literal["approval", "guidance", "custom_input", "quality_review"]
    message: str
    context: Optional[str] = None
    options: Optional[List[str]] = None
    urgency: Literal["low", "normal", "high"] = "normal"
    timestamp: datetime = Field(default_factory=_utcnow)
    interrupt_id: str = Field(default_factory=lambda: str(uuid4()))


class PendingInterrupt(BaseModel):
    """A suspended human-assistance request awaiting a response.

    Attributes:
        request: What the human is being asked
        tool_call_id: The call id the human's answer will be attached to
        deferred_messages: Tool results for calls requested after the human
            call, appended after the answer on resume to keep request order
    """
    request: InterruptRequest
    tool_call_id: str
    tool_name: str = "request_human_assistance"
    deferred_messages: List[ToolMessage] = Field(default_factory=list)


class StateUpdate(BaseModel):
    """Partial update returned by a node.

    ``messages`` are appended to the history; scalar fields replace the
    current value when set.
    """
    messages: List[Message] = Field(default_factory=list)
    iteration_count: Optional[int] = None
    is_complete: Optional[bool] = None


class ConversationState(BaseModel):
    """
    State of one conversation thread during an invocation.

    Attributes:
        input: The user's request for the current turn
        messages: Ordered, append-only message history
        iteration_count: Completed ``call_model`` executions this turn
        is_complete: Set only by the finalize node
        node_history: Names of nodes visited, in order
        status: Latest execution status per node
        current_node: Node currently executing, if any
        start_time: When the current turn started
        thread_id: Stable identifier across turns, used for checkpointing
        pending_interrupt: Present only while the thread is suspended
        llm_config: Model settings of the turn, kept so a resume uses the same model
    """
    input: ChatInput
    messages: List[Message] = Field(default_factory=list)
    iteration_count: int = 0
    is_complete: bool = False
    node_history: List[str] = Field(default_factory=list)
    status: Dict[str, NodeStatus] = Field(default_factory=dict)
    current_node: Optional[str] = None
    start_time: datetime = Field(default_factory=_utcnow)
    thread_id: Optional[str] = None
    pending_interrupt: Optional[PendingInterrupt] = None
    llm_config: Optional[Dict[str, Any]] = None

    @property
    def execution_time(self) -> float:
        """Seconds elapsed since the turn started."""
        return (_utcnow() - self.start_time).total_seconds()

    @property
    def output_text(self) -> str:
        """Content of the latest AI message, or an empty string."""
        message = self.last_ai_message()
        return message.content if message else ""

    def enter_node(self, node_id: str) -> None:
        """Record that a node started executing."""
        self.current_node = node_id
        self.node_history.append(node_id)
        self.status[node_id] = NodeStatus.RUNNING

    def exit_node(self, status: NodeStatus = NodeStatus.COMPLETED) -> None:
        """Record that the current node finished."""
        if self.current_node:
            self.status[self.current_node] = status
        self.current_node = None

    def has_system_message(self) -> bool:
        return any(isinstance(message, SystemMessage) for message in self.messages)

    def last_ai_message(self) -> Optional[AIMessage]:
        for message in reversed(self.messages):
            if isinstance(message, AIMessage):
                return message
        return None

    def answered_call_ids(self) -> set:
        return {
            message.tool_call_id
            for message in self.messages
            if isinstance(message, ToolMessage)
        }

    def unanswered_tool_calls(self) -> List[ToolCall]:
        """Tool calls of the latest AI message that have no result yet."""
        message = self.last_ai_message()
        if message is None or not message.tool_calls:
            return []
        answered = self.answered_call_ids()
        return [call for call in message.tool_calls if call.id not in answered]

    def has_outstanding_tool_calls(self) -> bool:
        return bool(self.unanswered_tool_calls())

    def apply(self, update: StateUpdate) -> None:
        """Merge a node's partial update into this state.

        Raises:
            WorkflowError: If a tool message references an unknown call id
        """
        known_ids = {
            call.id
            for message in self.messages
            if isinstance(message, AIMessage)
            for call in message.tool_calls
        }
        for message in update.messages:
            if isinstance(message, AIMessage):
                known_ids.update(call.id for call in message.tool_calls)
            elif isinstance(message, ToolMessage) and message.tool_call_id not in known_ids:
                raise WorkflowError(
                    f"Tool message references unknown call id: {message.tool_call_id}"
                )
        self.messages.extend(update.messages)

        if update.iteration_count is not None:
            self.iteration_count = update.iteration_count
        if update.is_complete is not None:
            self.is_complete = update.is_complete
