"""Continuation policy for the model loop."""

from typing import Literal

from chatgraph.core.graph.state import ConversationState

MAX_ITERATIONS = 3

Decision = Literal["continue", "end"]


def decide(state: ConversationState) -> Decision:
    """Decide whether the model loop may run another ``call_model`` step.

    Returns ``"end"`` once ``MAX_ITERATIONS`` model round-trips have completed
    or the turn is marked complete, ``"continue"`` otherwise. The bound holds
    no matter how many tool calls happen inside a single step.
    """
    if state.iteration_count >= MAX_ITERATIONS or state.is_complete:
        return "end"
    return "continue"
