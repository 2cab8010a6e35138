"""chatgraph - conversational agent backend built on a resumable workflow graph."""

__version__ = "0.1.0"

from chatgraph.core.logging import configure_logging, LogLevel, LogComponent
from chatgraph.core.config import Settings, LLMConfig
from chatgraph.core.graph import Graph, create_chat_graph, Completed, Suspended
from chatgraph.core.agent.chat import ChatAgent
from chatgraph.core.agent.registry import AgentRegistry

__all__ = [
    'ChatAgent',
    'AgentRegistry',
    'Graph',
    'create_chat_graph',
    'Completed',
    'Suspended',
    'Settings',
    'LLMConfig',
    'configure_logging',
    'LogLevel',
    'LogComponent'
]
