"""Base class for tools the chat model can call.

Tools are Mirascope ``BaseTool`` models: their fields are the argument schema
the model sees, and ``call`` runs the tool. Unlike a plain ``BaseTool``,
``call`` receives the ``ToolServices`` it needs (search client, database
agent), so tools carry no process-wide state.

Example:
    ```python
    class EchoTool(ChatTool):
        \"\"\"Repeat the given text.\"\"\"
        tool_name: ClassVar[str] = "echo"
        text: str = Field(..., description="Text to repeat")

        async def call(self, services: ToolServices) -> str:
            return self.text
    ```
"""

from typing import Any, ClassVar, Optional, Union

from mirascope.core import BaseTool
from pydantic import BaseModel, ConfigDict

from chatgraph.core.graph.state import InterruptRequest

ToolReturn = Union[str, InterruptRequest]


class ToolServices(BaseModel):
    """Collaborators available to tools during a turn.

    Attributes:
        search: Web search client with an async ``search(query)`` method
        database: Database sub-agent
    """
    search: Optional[Any] = None
    database: Optional[Any] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)


class ChatTool(BaseTool):
    """A tool the chat model may request by name."""

    tool_name: ClassVar[str] = ""

    @classmethod
    def _name(cls) -> str:
        return cls.tool_name or cls.__name__

    async def call(self, services: ToolServices) -> ToolReturn:
        """Run the tool. Must be implemented by subclasses."""
        raise NotImplementedError("Subclasses must implement call()")
