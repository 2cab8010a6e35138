"""Tests for the web search, database and human assistance tools."""

import asyncio
import json
from contextlib import asynccontextmanager

import pytest
from aiohttp import test_utils, web

from chatgraph.core.config import DatabaseAgentConfig
from chatgraph.core.database import DatabaseAgent
from chatgraph.core.errors import ToolExecutionError
from chatgraph.core.graph.state import InterruptRequest
from chatgraph.core.tools import (
    DatabaseQueryTool,
    DatabaseSchemaTool,
    HumanAssistanceTool,
    TavilySearch,
    ToolServices,
    WebSearchTool,
)
from chatgraph.core.tools.search import SEARCH_ERROR_MESSAGE

from fakes import ScriptedProvider, reply

TAVILY_RESPONSE = {
    "results": [
        {"title": "Weather", "url": "https://example.com/w", "content": "Sunny", "score": 0.9, "raw": "x"},
        {"title": "News", "url": "https://example.com/n", "content": "Quiet day", "score": 0.5},
    ]
}


@asynccontextmanager
async def tavily_server(handler):
    """Serve ``handler`` at /search on a local port and yield its URL."""
    app = web.Application()
    app.router.add_post("/search", handler)
    server = test_utils.TestServer(app)
    await server.start_server()
    try:
        yield str(server.make_url("/search"))
    finally:
        await server.close()


class TestTavilySearch:
    """Test the Tavily client against a local server."""

    @pytest.mark.asyncio
    async def test_returns_results_as_json(self):
        payloads = []

        async def handler(request: web.Request) -> web.Response:
            payloads.append(await request.json())
            return web.json_response(TAVILY_RESPONSE)

        async with tavily_server(handler) as url:
            output = await TavilySearch("tvly-test", max_results=2, url=url).search("weather today")

        assert json.loads(output) == [
            {"title": "Weather", "url": "https://example.com/w", "content": "Sunny", "score": 0.9},
            {"title": "News", "url": "https://example.com/n", "content": "Quiet day", "score": 0.5},
        ]
        assert payloads == [{"api_key": "tvly-test", "query": "weather today", "max_results": 2}]

    @pytest.mark.asyncio
    async def test_http_error_fails_soft(self):
        calls = []

        async def handler(request: web.Request) -> web.Response:
            calls.append(request)
            return web.json_response({"error": "bad key"}, status=401)

        async with tavily_server(handler) as url:
            output = await TavilySearch("tvly-test", url=url).search("q")

        assert output == SEARCH_ERROR_MESSAGE
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_missing_key_fails_soft(self):
        assert await TavilySearch(None).search("q") == SEARCH_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_timeout_is_retried(self):
        calls = []

        async def handler(request: web.Request) -> web.Response:
            calls.append(request)
            if len(calls) == 1:
                await asyncio.sleep(1)
            return web.json_response({"results": []})

        async with tavily_server(handler) as url:
            output = await TavilySearch("tvly-test", timeout=0.2, url=url).search("q")

        assert output == "[]"
        assert len(calls) == 2


class TestWebSearchTool:

    def test_tool_name(self):
        assert WebSearchTool._name() == "tavily_search_results_json"

    @pytest.mark.asyncio
    async def test_delegates_to_search(self, search):
        output = await WebSearchTool(query="python").call(ToolServices(search=search))
        assert output == "results for python"
        assert search.queries == ["python"]

    @pytest.mark.asyncio
    async def test_unconfigured(self):
        with pytest.raises(ToolExecutionError):
            await WebSearchTool(query="python").call(ToolServices())


class TestHumanAssistanceTool:

    @pytest.mark.asyncio
    async def test_returns_interrupt_request(self):
        tool = HumanAssistanceTool(
            request_type="approval",
            message="Send the email?",
            options=["send", "discard"],
        )
        request = await tool.call(ToolServices())
        assert isinstance(request, InterruptRequest)
        assert request.urgency == "normal"
        assert request.options == ["send", "discard"]


class TestDatabaseTools:
    """Test the database tools over a seeded in-memory database."""

    @pytest.mark.asyncio
    async def test_query_tool_formats_result(self, database):
        provider = ScriptedProvider([
            reply("Use the users table."),
            reply("```sql\nSELECT name FROM users WHERE department = 'Engineering' ORDER BY name\n```"),
            reply("Two engineers were found."),
        ])
        services = ToolServices(database=DatabaseAgent(database, provider))

        output = await DatabaseQueryTool(query="Who works in engineering?").call(services)

        assert output.startswith("Database Query Results:\n\nTwo engineers were found.")
        assert "SQL Query: SELECT name FROM users WHERE department = 'Engineering' ORDER BY name" in output
        assert "Rows Returned: 2" in output
        assert '"name": "Alice Brown"' in output

    @pytest.mark.asyncio
    async def test_query_tool_refuses_writes(self, database):
        provider = ScriptedProvider([reply("users"), reply("DELETE FROM users")])
        services = ToolServices(database=DatabaseAgent(database, provider, DatabaseAgentConfig()))

        output = await DatabaseQueryTool(query="Remove everyone").call(services)

        assert "Write operations are not allowed" in output
        rows = await database.query("SELECT COUNT(*) AS count FROM users")
        assert rows[0]["count"] == 5

    @pytest.mark.asyncio
    async def test_query_tool_no_rows(self, database):
        provider = ScriptedProvider([
            reply("users"),
            reply("SELECT * FROM users WHERE age > 100"),
            reply("Nobody is that old."),
        ])
        output = await DatabaseQueryTool(query="Centenarians?").call(
            ToolServices(database=DatabaseAgent(database, provider))
        )
        assert "Rows Returned: 0" in output
        assert output.endswith("No data found.")

    @pytest.mark.asyncio
    async def test_schema_tool(self, database):
        services = ToolServices(database=DatabaseAgent(database, ScriptedProvider()))
        output = await DatabaseSchemaTool().call(services)
        assert "Table: orders" in output
        assert "database_query tool" in output

    @pytest.mark.asyncio
    async def test_unconfigured(self):
        with pytest.raises(ToolExecutionError):
            await DatabaseSchemaTool().call(ToolServices())
