"""Base node class for the graph system.

A Node is a single named step of the workflow (building messages, calling the
model, finalizing a turn). Nodes read the current ``ConversationState`` and
return a ``NodeOutcome`` describing what changed; they never mutate the state
they are given, the graph applies the update.

Outcomes are an explicit result type rather than control-flow exceptions:
    - ``Proceed(update)``: the node finished, continue routing
    - ``Interrupt(update, pending)``: the node needs human input, suspend the turn

Typical Usage:
    - Subclass Node
    - Override ``process`` to return a ``Proceed`` or ``Interrupt``
    - Register the node with a Graph and connect it with edges
"""

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from chatgraph.core.graph.state import ConversationState, PendingInterrupt, StateUpdate
from chatgraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.NODES)


class Proceed(BaseModel):
    """The node completed and the graph may route onward."""
    kind: Literal["proceed"] = "proceed"
    update: StateUpdate = Field(default_factory=StateUpdate)


class Interrupt(BaseModel):
    """The node stopped to wait for a human response."""
    kind: Literal["interrupt"] = "interrupt"
    update: StateUpdate = Field(default_factory=StateUpdate)
    pending: PendingInterrupt


NodeOutcome = Union[Proceed, Interrupt]


class Node(BaseModel):
    """
    Abstract base node for graph operations.

    Attributes:
        id: Unique node identifier
        description: Human-readable summary, used in graph metadata
    """
    id: str = Field(..., description="Unique identifier for this node")
    description: str = Field(default="")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @model_validator(mode='after')
    def validate_node(self) -> 'Node':
        """Validate node configuration."""
        if not self.id:
            raise ValueError("Node must have an ID")
        return self

    async def process(self, state: ConversationState) -> NodeOutcome:
        """Process node logic. Must be implemented by subclasses."""
        raise NotImplementedError("Subclasses must implement process()")

    def validate(self) -> bool:
        """
        Validate node configuration.

        Override in subclasses if additional checks are required.

        Returns:
            True if the node is considered valid.
        """
        return True
