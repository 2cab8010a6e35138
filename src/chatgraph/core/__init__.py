"""Core modules for chatgraph."""

from chatgraph.core.logging import configure_logging, LogLevel, LogComponent
from chatgraph.core.config import Settings, LLMConfig, DatabaseAgentConfig
from chatgraph.core.errors import ChatGraphError

__all__ = [
    'Settings',
    'LLMConfig',
    'DatabaseAgentConfig',
    'ChatGraphError',
    'configure_logging',
    'LogLevel',
    'LogComponent'
]
