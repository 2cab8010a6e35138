"""Node package initialization.

Exposes node types for building workflows.
"""

from chatgraph.core.graph.nodes.base.node import (
    Node,
    NodeOutcome,
    Proceed,
    Interrupt,
)
from chatgraph.core.graph.nodes.input import InputNode
from chatgraph.core.graph.nodes.model import CallModelNode
from chatgraph.core.graph.nodes.finalize import FinalizeNode

__all__ = [
    # Base node types
    "Node",
    "NodeOutcome",
    "Proceed",
    "Interrupt",

    # Chat nodes
    "InputNode",
    "CallModelNode",
    "FinalizeNode",
]
