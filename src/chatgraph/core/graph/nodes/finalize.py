"""Finalize node: marks the turn complete."""

from chatgraph.core.graph.nodes.base.node import Node, NodeOutcome, Proceed
from chatgraph.core.graph.state import ConversationState, StateUpdate


class FinalizeNode(Node):
    id: str = "finalize"
    description: str = "Mark the turn as complete"

    async def process(self, state: ConversationState) -> NodeOutcome:
        return Proceed(update=StateUpdate(is_complete=True))
