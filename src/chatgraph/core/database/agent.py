"""Natural-language-to-SQL database agent.

The agent answers a question about stored data in four steps:

    1. analyze_schema: ask the model which tables and columns matter
    2. generate_sql: ask the model for one SQLite statement, strip markdown
       fences and reject writes unless they are allowed
    3. execute: run the statement under a hard timeout and cap the rows
    4. format_results: ask the model to explain the rows; if that fails the
       query still succeeds with a fixed explanation

Example:
    ```python
    agent = DatabaseAgent(SQLiteDatabase(":memory:"), provider)
    result = await agent.process_query(DatabaseQuery(query="How many users are in Engineering?"))
    print(result.sql_query, result.row_count)
    ```
"""

import asyncio
import json
import time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from chatgraph.core.agent.provider import ModelProvider
from chatgraph.core.config import DatabaseAgentConfig
from chatgraph.core.database import prompts
from chatgraph.core.database.connection import DatabaseConnection
from chatgraph.core.database.safety import check_query_safety, strip_sql_fences
from chatgraph.core.errors import ChatGraphError, DatabaseError, QueryTimeoutError
from chatgraph.core.graph.state import HumanMessage, SystemMessage
from chatgraph.core.logging import get_logger, LogComponent, log_agent

logger = get_logger(LogComponent.DATABASE)

FORMAT_FALLBACK_EXPLANATION = "Failed to format results, but query executed successfully."


class DatabaseQuery(BaseModel):
    """A natural-language question about the database."""
    query: str = Field(..., min_length=1)
    table_context: Optional[str] = Field(
        default=None,
        description="Optional context about tables to query"
    )
    max_results: int = Field(default=100, gt=0)


class DatabaseResult(BaseModel):
    """Outcome of a database query."""
    sql_query: str
    results: List[Dict[str, Any]] = Field(default_factory=list)
    row_count: int = 0
    execution_time: int = Field(default=0, description="Query execution time in milliseconds")
    explanation: str = ""


class DatabaseAgent:
    """Answers questions about a database by generating and running SQL.

    Attributes:
        database: Connection the statements run against
        provider: Model used for the analysis, generation and formatting steps
        config: Safety and model settings
    """

    def __init__(
        self,
        database: DatabaseConnection,
        provider: ModelProvider,
        config: Optional[DatabaseAgentConfig] = None,
    ) -> None:
        self.database = database
        self.provider = provider
        self.config = config or DatabaseAgentConfig()

    async def process_query(self, request: DatabaseQuery) -> DatabaseResult:
        """Run the full question-to-answer pipeline.

        Raises:
            UnsafeQueryError: If the generated statement writes and writes are disallowed
            QueryTimeoutError: If execution exceeds ``max_execution_time``
            DatabaseError: If the statement fails
            ProviderError: If a model step fails before execution
        """
        preview = request.query[:100] + ("..." if len(request.query) > 100 else "")
        log_agent(logger, f"Database query: {preview}")

        schema_context = await self.analyze_schema(request.query)
        sql_query = await self.generate_sql(request, schema_context)
        results, execution_time = await self.execute(sql_query, request.max_results)
        explanation = await self.format_results(request.query, sql_query, results, execution_time)

        return DatabaseResult(
            sql_query=sql_query,
            results=results,
            row_count=len(results),
            execution_time=execution_time,
            explanation=explanation,
        )

    async def analyze_schema(self, user_query: str) -> str:
        schema = await self.database.get_schema()
        context = await self._complete(prompts.format_schema_analysis(schema, user_query))
        logger.debug(f"Schema analysis completed ({len(context)} chars)")
        return context

    async def generate_sql(self, request: DatabaseQuery, schema_context: str) -> str:
        prompt = prompts.format_sql_generation(
            schema_context,
            request.query,
            request.table_context or "",
            request.max_results,
        )
        sql_query = strip_sql_fences(await self._complete(prompt))
        if not sql_query:
            raise DatabaseError("SQL generation returned an empty statement")
        check_query_safety(sql_query, self.config.allow_write_operations)
        logger.info(f"Generated SQL: {sql_query[:100]}")
        return sql_query

    async def execute(self, sql_query: str, max_results: int = 100) -> tuple:
        """Run a statement with the configured timeout.

        Returns:
            (rows capped to ``max_results``, execution time in milliseconds)
        """
        start = time.perf_counter()
        try:
            rows = await asyncio.wait_for(
                self.database.query(sql_query),
                timeout=self.config.max_execution_time,
            )
        except asyncio.TimeoutError as e:
            raise QueryTimeoutError(self.config.max_execution_time) from e
        execution_time = int((time.perf_counter() - start) * 1000)

        limited = rows[:max_results]
        logger.info(
            f"Query returned {len(limited)} rows in {execution_time}ms"
            + (f" (limited from {len(rows)})" if len(limited) < len(rows) else "")
        )
        return limited, execution_time

    async def format_results(
        self,
        user_query: str,
        sql_query: str,
        results: List[Dict[str, Any]],
        execution_time: int,
    ) -> str:
        results_data = json.dumps(results, indent=2, default=str) if results else "No results found"
        prompt = prompts.format_result_explanation(
            user_query, sql_query, len(results), execution_time, results_data
        )
        try:
            return await self._complete(prompt)
        except ChatGraphError as e:
            logger.error(f"Results formatting failed: {e}")
            return FORMAT_FALLBACK_EXPLANATION

    async def get_schema(self) -> str:
        return await self.database.get_schema()

    async def test_connection(self) -> bool:
        try:
            await self.database.query("SELECT 1")
        except DatabaseError as e:
            logger.error(f"Database connection test failed: {e}")
            return False
        return True

    async def _complete(self, prompt: str) -> str:
        response = await self.provider.invoke(
            [
                SystemMessage(content=prompts.DATABASE_SYSTEM_MESSAGE),
                HumanMessage(content=prompt),
            ],
            [],
        )
        return response.content
