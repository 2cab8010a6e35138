"""Graph package initialization.

Exposes the workflow engine, its state model and checkpoint stores.
"""

from chatgraph.core.graph.state import (
    ConversationState,
    ChatInput,
    InterruptRequest,
    PendingInterrupt,
    NodeStatus,
)
from chatgraph.core.graph.checkpoint import Checkpoint, CheckpointStore, MemoryCheckpointStore
from chatgraph.core.graph.policy import decide, MAX_ITERATIONS
from chatgraph.core.graph.base import (
    Graph,
    ThreadConfig,
    Completed,
    Suspended,
    RunResult,
    END,
    create_chat_graph,
)

__all__ = [
    # Engine
    "Graph",
    "ThreadConfig",
    "Completed",
    "Suspended",
    "RunResult",
    "END",
    "create_chat_graph",

    # State
    "ConversationState",
    "ChatInput",
    "InterruptRequest",
    "PendingInterrupt",
    "NodeStatus",

    # Persistence and policy
    "Checkpoint",
    "CheckpointStore",
    "MemoryCheckpointStore",
    "decide",
    "MAX_ITERATIONS",
]
