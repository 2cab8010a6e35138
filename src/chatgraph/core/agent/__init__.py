"""Agent module for chatgraph."""

from chatgraph.core.agent.provider import ModelProvider, ModelResponse, MirascopeProvider, create_provider

__all__ = [
    'ModelProvider',
    'ModelResponse',
    'MirascopeProvider',
    'create_provider',
]
