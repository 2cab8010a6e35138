"""Human assistance tool.

Calling this tool does not produce text. It returns an ``InterruptRequest``,
which the model node turns into a suspension of the turn. The human's answer
is attached later as the tool result for this call.
"""

from typing import ClassVar, List, Literal, Optional

from pydantic import Field

from chatgraph.core.graph.state import InterruptRequest
from chatgraph.core.logging import get_logger, LogComponent
from chatgraph.core.tools.base import ChatTool, ToolServices

logger = get_logger(LogComponent.TOOLS)


class HumanAssistanceTool(ChatTool):
    """Request help from a human when you need:
    - Approval for sensitive actions (like deleting data or making important decisions)
    - Expert guidance on complex topics you're uncertain about
    - Specific information that only the user can provide
    - Quality review of your response before sending it

    This will pause the conversation and wait for human input before continuing.
    """

    tool_name: ClassVar[str] = "request_human_assistance"

    request_type: Literal["approval", "guidance", "custom_input", "quality_review"] = Field(
        ...,
        description=(
            "The type of human assistance needed: 'approval' for permission requests, "
            "'guidance' for expert help, 'custom_input' for specific information, "
            "'quality_review' for response validation"
        ),
    )
    message: str = Field(..., description="The specific question or request for the human")
    context: Optional[str] = Field(
        default=None,
        description="Additional context about the situation"
    )
    options: Optional[List[str]] = Field(
        default=None,
        description="Available options for the human to choose from (for approval or selection requests)"
    )
    urgency: Literal["low", "normal", "high"] = Field(
        default="normal",
        description="Priority level of the request"
    )

    async def call(self, services: ToolServices) -> InterruptRequest:
        logger.info(
            f"Human assistance requested ({self.request_type}, urgency={self.urgency}): "
            f"{self.message[:100]}"
        )
        return InterruptRequest(
            request_type=self.request_type,
            message=self.message,
            context=self.context,
            options=self.options,
            urgency=self.urgency,
        )
