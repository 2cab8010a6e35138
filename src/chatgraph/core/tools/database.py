"""Database tools for the chat agent.

Both tools delegate to the database agent in ``ToolServices``. Failures are
returned as an apology so the model can ask the user to rephrase.
"""

import json
from typing import ClassVar, Optional

from pydantic import Field

from chatgraph.core.database.agent import DatabaseQuery
from chatgraph.core.errors import ChatGraphError, ToolExecutionError
from chatgraph.core.logging import get_logger, LogComponent
from chatgraph.core.tools.base import ChatTool, ToolServices

logger = get_logger(LogComponent.TOOLS)


def _require_database(services: ToolServices, tool_name: str):
    if services.database is None:
        raise ToolExecutionError(tool_name, "database agent is not configured")
    return services.database


class DatabaseQueryTool(ChatTool):
    """Query a database using natural language. This tool can help you retrieve information
    from database tables, perform analysis, generate reports, and answer questions about stored
    data. It automatically converts your natural language query into SQL and executes it safely."""

    tool_name: ClassVar[str] = "database_query"

    query: str = Field(
        ...,
        description=(
            "The natural language query to execute against the database. "
            "Be specific about what data you're looking for."
        ),
    )
    table_context: Optional[str] = Field(
        default=None,
        description="Optional context about specific tables to focus on, if known"
    )
    max_results: int = Field(
        default=50,
        gt=0,
        description="Maximum number of results to return (default: 50)"
    )

    async def call(self, services: ToolServices) -> str:
        database = _require_database(services, self.tool_name)
        try:
            result = await database.process_query(
                DatabaseQuery(
                    query=self.query,
                    table_context=self.table_context,
                    max_results=self.max_results,
                )
            )
        except ChatGraphError as e:
            logger.error(f"Database query tool failed: {e}")
            return (
                "I apologize, but I encountered an error while querying the database: "
                f"{e}. Please try rephrasing your query or check if the requested data exists."
            )

        sample = (
            "Sample Data:\n" + json.dumps(result.results[:3], indent=2, default=str)
            if result.row_count > 0
            else "No data found."
        )
        return (
            "Database Query Results:\n\n"
            f"{result.explanation}\n\n"
            f"SQL Query: {result.sql_query}\n"
            f"Rows Returned: {result.row_count}\n"
            f"Execution Time: {result.execution_time}ms\n\n"
            f"{sample}"
        )


class DatabaseSchemaTool(ChatTool):
    """Get information about the database schema, including tables, columns, and data types.
    This helps understand what data is available for querying."""

    tool_name: ClassVar[str] = "database_schema"

    async def call(self, services: ToolServices) -> str:
        database = _require_database(services, self.tool_name)
        try:
            schema = await database.get_schema()
        except ChatGraphError as e:
            logger.error(f"Database schema tool failed: {e}")
            return f"I apologize, but I encountered an error while retrieving the database schema: {e}."

        return (
            "Database Schema Information:\n\n"
            f"{schema}\n\n"
            "You can now query this database using natural language with the database_query tool."
        )
