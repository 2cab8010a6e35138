"""Error taxonomy for chatgraph.

Tool-level errors are absorbed by the tool invocation layer and turned into
conversation content; everything else propagates to the caller of
``Graph.invoke`` / ``Graph.resume``.
"""

from typing import Optional


class ChatGraphError(Exception):
    """Base class for all chatgraph errors."""


class ValidationError(ChatGraphError):
    """Malformed input or configuration, rejected before the engine runs."""


class ProviderError(ChatGraphError):
    """A model or search provider could not be reached or refused the call."""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class AuthenticationError(ProviderError):
    """Provider credentials are missing or were rejected."""


class ToolExecutionError(ChatGraphError):
    """A single tool call failed."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(f"Tool '{tool_name}' failed: {message}")
        self.tool_name = tool_name


class ThreadNotFoundError(ChatGraphError):
    """No suspended checkpoint exists for the requested thread."""

    def __init__(self, thread_id: str, reason: str = "no checkpoint found"):
        super().__init__(f"Thread '{thread_id}' cannot be resumed: {reason}")
        self.thread_id = thread_id


class ThreadInterruptedError(ChatGraphError):
    """New input was sent to a thread that is waiting for a human response."""

    def __init__(self, thread_id: str):
        super().__init__(
            f"Thread '{thread_id}' is waiting for human assistance; resume it first"
        )
        self.thread_id = thread_id


class WorkflowError(ChatGraphError):
    """The graph is misconfigured or exceeded its step guard."""


class DatabaseError(ChatGraphError):
    """The database could not be reached or rejected a statement."""


class UnsafeQueryError(DatabaseError):
    """A generated statement writes data while writes are not allowed."""

    def __init__(self, sql: str):
        super().__init__("Write operations are not allowed in current configuration")
        self.sql = sql


class QueryTimeoutError(DatabaseError):
    """A database query exceeded its execution time budget."""

    def __init__(self, timeout: float):
        super().__init__(f"Query execution timeout after {timeout:g}s")
        self.timeout = timeout
