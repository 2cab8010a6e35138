"""Web search tool backed by the Tavily search API.

``TavilySearch`` is a small async client; ``WebSearchTool`` is the tool the
chat model calls. Connection errors and timeouts are retried, anything else
fails soft with an apology so the model can carry on without results.
"""

import asyncio
import json
from typing import Any, ClassVar, Dict, List, Optional

import aiohttp
from pydantic import Field
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from chatgraph.core.errors import ToolExecutionError
from chatgraph.core.logging import get_logger, LogComponent
from chatgraph.core.tools.base import ChatTool, ToolServices

logger = get_logger(LogComponent.TOOLS)

TAVILY_SEARCH_URL = "https://api.tavily.com/search"
SEARCH_ERROR_MESSAGE = (
    "I apologize, but I encountered an error while searching for information. "
    "Please try again."
)


class TavilySearch:
    """Async client for Tavily search.

    Attributes:
        api_key: Tavily API key
        max_results: Number of results requested per query
        timeout: Request timeout in seconds
        url: Search endpoint
    """

    def __init__(
        self,
        api_key: Optional[str],
        max_results: int = 5,
        timeout: float = 20.0,
        url: str = TAVILY_SEARCH_URL,
    ) -> None:
        self.api_key = api_key
        self.max_results = max_results
        self.timeout = timeout
        self.url = url

    async def search(self, query: str) -> str:
        """Search the web and return results as a JSON string.

        Never raises: failures are logged and an apology string is returned.
        """
        if not self.api_key:
            logger.error("Tavily API key not configured")
            return SEARCH_ERROR_MESSAGE
        try:
            results = await self._fetch(query)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Web search failed for {query!r}: {e!r}")
            return SEARCH_ERROR_MESSAGE
        logger.debug(f"Web search returned {len(results)} results for {query!r}")
        return json.dumps(results)

    @retry(
        retry=retry_if_exception_type((aiohttp.ClientConnectionError, asyncio.TimeoutError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    async def _fetch(self, query: str) -> List[Dict[str, Any]]:
        payload = {
            "api_key": self.api_key,
            "query": query,
            "max_results": self.max_results,
        }
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(self.url, json=payload) as response:
                response.raise_for_status()
                data = await response.json()

        return [
            {
                "title": item.get("title"),
                "url": item.get("url"),
                "content": item.get("content"),
                "score": item.get("score"),
            }
            for item in data.get("results", [])
        ]


class WebSearchTool(ChatTool):
    """A search engine optimized for comprehensive, accurate, and trusted results.
    Useful for when you need to answer questions about current events.
    Input should be a search query."""

    tool_name: ClassVar[str] = "tavily_search_results_json"

    query: str = Field(..., description="Search query to look up")

    async def call(self, services: ToolServices) -> str:
        if services.search is None:
            raise ToolExecutionError(self.tool_name, "web search is not configured")
        return await services.search.search(self.query)
