"""Tools module for chatgraph."""

from chatgraph.core.tools.base import ChatTool, ToolServices
from chatgraph.core.tools.invoker import ToolInvoker, ToolResult, HumanInputRequest
from chatgraph.core.tools.search import WebSearchTool, TavilySearch
from chatgraph.core.tools.database import DatabaseQueryTool, DatabaseSchemaTool
from chatgraph.core.tools.human import HumanAssistanceTool

DEFAULT_TOOLS = [
    WebSearchTool,
    DatabaseQueryTool,
    DatabaseSchemaTool,
    HumanAssistanceTool,
]

__all__ = [
    'ChatTool',
    'ToolServices',
    'ToolInvoker',
    'ToolResult',
    'HumanInputRequest',
    'WebSearchTool',
    'TavilySearch',
    'DatabaseQueryTool',
    'DatabaseSchemaTool',
    'HumanAssistanceTool',
    'DEFAULT_TOOLS',
]
