"""Graph Base Classes

This module defines the workflow engine that drives a conversation turn.
The graph provides a lightweight way to:
1. Register nodes and connect them with plain or conditional edges
2. Run nodes sequentially over a ``ConversationState``, applying their updates
3. Suspend a turn when a node asks for human input, and resume it later
4. Persist thread state in a checkpoint store between invocations

Example:
    ```python
    graph = create_chat_graph(provider, invoker, store)

    result = await graph.invoke(ChatInput(input_text="Hi"), ThreadConfig(thread_id="t1"))
    if isinstance(result, Suspended):
        result = await graph.resume("t1", "Yes, go ahead")
    print(result.state.output_text)
    ```
"""

import logging
from typing import Any, Callable, Dict, List, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from chatgraph.core.agent.provider import ModelProvider
from chatgraph.core.config import LLMConfig
from chatgraph.core.errors import ThreadInterruptedError, ThreadNotFoundError, WorkflowError
from chatgraph.core.graph.checkpoint import CheckpointStore, MemoryCheckpointStore
from chatgraph.core.graph.nodes.base.node import Interrupt, Node
from chatgraph.core.graph.nodes.finalize import FinalizeNode
from chatgraph.core.graph.nodes.input import InputNode
from chatgraph.core.graph.nodes.model import CallModelNode
from chatgraph.core.graph.policy import MAX_ITERATIONS, decide
from chatgraph.core.graph.state import (
    ChatInput,
    ConversationState,
    InterruptRequest,
    NodeStatus,
    StateUpdate,
    ToolMessage,
    _utcnow,
)
from chatgraph.core.logging import get_logger, LogComponent, log_state
from chatgraph.core.tools.invoker import ToolInvoker

END = "__end__"
DEFAULT_ENTRY = "default"
RESUME_ENTRY = "resume"


class ThreadConfig(BaseModel):
    """Per-invocation thread settings."""
    thread_id: Optional[str] = None


class Completed(BaseModel):
    """The turn ran to the end of the graph."""
    kind: Literal["completed"] = "completed"
    state: ConversationState


class Suspended(BaseModel):
    """The turn is waiting for a human response."""
    kind: Literal["suspended"] = "suspended"
    state: ConversationState
    interrupt: InterruptRequest

    @property
    def thread_id(self) -> str:
        return self.state.thread_id


RunResult = Union[Completed, Suspended]


class ConditionalEdge(BaseModel):
    """Routes from a node by calling ``router(state)`` and looking up the key."""
    router: Callable[[ConversationState], str]
    path_map: Dict[str, str]


class Graph(BaseModel):
    """A directed graph of nodes that executes one conversation turn.

    Attributes:
        nodes: Dictionary mapping node IDs to Node instances
        edges: Unconditional transitions, source ID to target ID
        conditional_edges: Router-based transitions keyed by source ID
        entry_points: Dictionary mapping entry point names to starting node IDs
        store: Checkpoint store for thread state
        llm_config: Default model settings recorded on new turns
        max_steps: Node executions allowed per run before aborting
    """
    nodes: Dict[str, Node] = Field(default_factory=dict)
    edges: Dict[str, str] = Field(default_factory=dict)
    conditional_edges: Dict[str, ConditionalEdge] = Field(default_factory=dict)
    entry_points: Dict[str, str] = Field(default_factory=dict)
    store: Any = Field(default_factory=MemoryCheckpointStore)
    llm_config: Optional[LLMConfig] = None
    max_steps: int = Field(default=25, gt=0)
    _logger: logging.Logger = PrivateAttr()

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def __init__(self, **data):
        super().__init__(**data)
        if not isinstance(self.store, CheckpointStore):
            raise TypeError("store must implement get() and put()")
        self._logger = get_logger(LogComponent.ENGINE)

    def add_node(self, node: Node) -> None:
        """Register a node with the graph.

        Raises:
            ValueError: If node has no ID or fails validation
        """
        if not node.id:
            raise ValueError("Node must have an id set")
        if node.id == END:
            raise ValueError(f"Node id is reserved: {END}")
        if not node.validate():
            raise ValueError(f"Node {node.id} failed validation")

        self.nodes[node.id] = node
        self._logger.info(f"Added node: {node.id} of type {type(node).__name__}")

    def add_edge(self, from_node_id: str, to_node_id: str) -> None:
        """Add an unconditional edge. ``to_node_id`` may be ``END``.

        Raises:
            ValueError: If either node ID is not found
        """
        if from_node_id not in self.nodes:
            raise ValueError(f"Source node not found: {from_node_id}")
        if to_node_id != END and to_node_id not in self.nodes:
            raise ValueError(f"Target node not found: {to_node_id}")

        self.edges[from_node_id] = to_node_id
        self._logger.info(f"Added edge: {from_node_id} --> {to_node_id}")

    def add_conditional_edges(
        self,
        from_node_id: str,
        router: Callable[[ConversationState], str],
        path_map: Dict[str, str],
    ) -> None:
        """Route from a node by the key ``router(state)`` returns.

        Raises:
            ValueError: If a node ID is not found
        """
        if from_node_id not in self.nodes:
            raise ValueError(f"Source node not found: {from_node_id}")
        for target in path_map.values():
            if target != END and target not in self.nodes:
                raise ValueError(f"Target node not found: {target}")

        self.conditional_edges[from_node_id] = ConditionalEdge(router=router, path_map=path_map)
        self._logger.info(
            f"Added conditional edges from {from_node_id}: "
            + ", ".join(f"[{key}] --> {target}" for key, target in path_map.items())
        )

    def set_entry_point(self, node_id: str, name: str = DEFAULT_ENTRY) -> None:
        """Set an entry point for the graph.

        Raises:
            ValueError: If node_id is not found
        """
        if node_id not in self.nodes:
            raise ValueError(f"Node not found: {node_id}")
        self.entry_points[name] = node_id
        self._logger.info(f"Set entry point '{name}' to node: {node_id}")

    async def invoke(
        self,
        chat_input: ChatInput,
        thread_config: Optional[ThreadConfig] = None,
        llm_config: Optional[LLMConfig] = None,
    ) -> RunResult:
        """Run one turn for the given input.

        A known thread is continued from its checkpoint; otherwise a fresh
        state is created. Suspended turns are always checkpointed (a thread id
        is generated when none was given); completed turns are checkpointed
        when they have a thread id. Nothing is written if a node fails.

        Raises:
            ThreadInterruptedError: If the thread is waiting for a human response
        """
        thread_id = thread_config.thread_id if thread_config else None
        state: Optional[ConversationState] = None

        if thread_id:
            checkpoint = await self.store.get(thread_id)
            if checkpoint is not None:
                state = checkpoint.state
                if state.pending_interrupt is not None:
                    raise ThreadInterruptedError(thread_id)
                self._logger.info(
                    f"Continuing thread {thread_id} from revision {checkpoint.revision}"
                )
                state.input = chat_input
                state.is_complete = False
                state.node_history = []
                state.status = {}
                state.start_time = _utcnow()

        if state is None:
            state = ConversationState(input=chat_input, thread_id=thread_id)

        config = llm_config or self.llm_config
        if config is not None:
            state.llm_config = config.model_dump()

        result = await self.run(state, DEFAULT_ENTRY)
        await self._persist(result)
        return result

    async def resume(self, thread_id: str, human_response: str) -> RunResult:
        """Continue a suspended thread with the human's answer.

        The answer becomes the tool result of the pending human-assistance
        call, followed by any tool results deferred at suspension. Execution
        re-enters at the model node; the iteration count carries over.

        Raises:
            ThreadNotFoundError: If the thread has no checkpoint or is not suspended
        """
        checkpoint = await self.store.get(thread_id)
        if checkpoint is None:
            raise ThreadNotFoundError(thread_id)
        state = checkpoint.state
        pending = state.pending_interrupt
        if pending is None:
            raise ThreadNotFoundError(thread_id, "thread is not waiting for human input")

        self._logger.info(f"Resuming thread {thread_id} (interrupt {pending.request.interrupt_id})")
        state.apply(StateUpdate(messages=[
            ToolMessage(
                content=human_response,
                tool_call_id=pending.tool_call_id,
                name=pending.tool_name,
            ),
            *pending.deferred_messages,
        ]))
        state.pending_interrupt = None
        state.node_history = []
        state.status = {}
        state.start_time = _utcnow()

        result = await self.run(state, RESUME_ENTRY)
        await self._persist(result)
        return result

    async def run(
        self,
        state: ConversationState,
        entry_point: Optional[str] = None,
    ) -> RunResult:
        """Run the graph from a named entry point.

        Raises:
            ValueError: If entry point is not found
            WorkflowError: If ``max_steps`` node executions are exceeded
        """
        entry_point = entry_point or DEFAULT_ENTRY
        if entry_point not in self.entry_points:
            raise ValueError(f"Entry point not found: {entry_point}")

        current_node_id: Optional[str] = self.entry_points[entry_point]
        self._logger.info(f"Starting graph execution at node: {current_node_id}")

        steps = 0
        while current_node_id:
            steps += 1
            if steps > self.max_steps:
                self._logger.error("Maximum steps exceeded, aborting execution.")
                raise WorkflowError(f"Graph exceeded {self.max_steps} steps")

            node = self.nodes[current_node_id]
            state.enter_node(current_node_id)
            try:
                outcome = await node.process(state)
                state.apply(outcome.update)
            except Exception as e:
                state.exit_node(NodeStatus.ERROR)
                self._logger.error(f"Error in node {node.id}: {e}")
                raise

            if isinstance(outcome, Interrupt):
                state.pending_interrupt = outcome.pending
                state.exit_node(NodeStatus.SUSPENDED)
                self._logger.info(f"Suspended at node: {node.id}")
                return Suspended(state=state, interrupt=outcome.pending.request)

            state.exit_node(NodeStatus.COMPLETED)
            current_node_id = self._next_node(node.id, state)
            if current_node_id:
                self._logger.info(f"Transitioning {node.id} --> {current_node_id}")
            else:
                self._logger.info(f"Reached terminal node: {node.id}")

        log_state(self._logger, {
            "iterations": state.iteration_count,
            "messages": len(state.messages),
            "nodes": state.node_history,
        }, prefix="Final ")
        return Completed(state=state)

    def _next_node(self, node_id: str, state: ConversationState) -> Optional[str]:
        conditional = self.conditional_edges.get(node_id)
        if conditional is not None:
            key = conditional.router(state)
            if key not in conditional.path_map:
                raise WorkflowError(f"Router for {node_id} returned unknown key: {key}")
            target = conditional.path_map[key]
        else:
            target = self.edges.get(node_id)
        return None if target in (None, END) else target

    async def _persist(self, result: RunResult) -> None:
        state = result.state
        if isinstance(result, Suspended):
            if not state.thread_id:
                state.thread_id = str(uuid4())
            await self.store.put(state.thread_id, state)
        elif state.thread_id:
            await self.store.put(state.thread_id, state)

    def validate(self) -> List[str]:
        """Validate the graph configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors: List[str] = []

        if not self.nodes:
            errors.append("Graph has no nodes")
            return errors

        for node_id, node in self.nodes.items():
            if not node.validate():
                errors.append(f"Node {node_id} failed validation")

        for source, target in self.edges.items():
            if target != END and target not in self.nodes:
                errors.append(f"Node {source} references unknown node: {target}")
        for source, conditional in self.conditional_edges.items():
            for target in conditional.path_map.values():
                if target != END and target not in self.nodes:
                    errors.append(f"Node {source} references unknown node: {target}")

        if DEFAULT_ENTRY not in self.entry_points:
            errors.append("Graph has no default entry point")
        for name, node_id in self.entry_points.items():
            if node_id not in self.nodes:
                errors.append(f"Entry point '{name}' references unknown node: {node_id}")

        return errors

    def get_metadata(self) -> Dict[str, Any]:
        """Describe nodes, edges and routing for visualisation."""
        return {
            "nodes": [
                {"id": node.id, "type": type(node).__name__, "description": node.description}
                for node in self.nodes.values()
            ],
            "edges": [
                {"from": source, "to": target}
                for source, target in self.edges.items()
            ],
            "conditional_edges": [
                {
                    "from": source,
                    "router": getattr(conditional.router, "__name__", repr(conditional.router)),
                    "paths": dict(conditional.path_map),
                }
                for source, conditional in self.conditional_edges.items()
            ],
            "entry_points": dict(self.entry_points),
            "max_iterations": MAX_ITERATIONS,
        }


def route_after_model(state: ConversationState) -> str:
    """Loop back to the model only while the policy allows it and tool work is pending."""
    if decide(state) == "continue" and state.has_outstanding_tool_calls():
        return "continue"
    return "end"


def create_chat_graph(
    provider: ModelProvider,
    invoker: Optional[ToolInvoker] = None,
    store: Optional[CheckpointStore] = None,
    llm_config: Optional[LLMConfig] = None,
) -> Graph:
    """Build the input -> call_model -> finalize chat graph."""
    if store is None:
        store = MemoryCheckpointStore()
    graph = Graph(store=store, llm_config=llm_config)
    graph.add_node(InputNode())
    graph.add_node(CallModelNode(provider=provider, invoker=invoker or ToolInvoker()))
    graph.add_node(FinalizeNode())

    graph.add_edge("input", "call_model")
    graph.add_conditional_edges(
        "call_model",
        route_after_model,
        {"continue": "call_model", "end": "finalize"},
    )
    graph.add_edge("finalize", END)

    graph.set_entry_point("input")
    graph.set_entry_point("call_model", RESUME_ENTRY)
    return graph
