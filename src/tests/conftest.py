"""Shared fixtures for the chatgraph test suite."""

import pytest
import pytest_asyncio

from chatgraph.core.config import LLMConfig, Settings
from chatgraph.core.database import SQLiteDatabase
from chatgraph.core.graph.base import Graph, create_chat_graph
from chatgraph.core.graph.checkpoint import MemoryCheckpointStore
from chatgraph.core.tools import HumanAssistanceTool, ToolInvoker, ToolServices

from fakes import EchoTool, FailingTool, FakeSearch, ScriptedProvider

SETTINGS_ENV_VARS = [name.upper() for name in Settings.model_fields]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the developer's shell variables out of Settings."""
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings() -> Settings:
    """Settings with a dummy OpenAI key and an in-memory database."""
    return Settings(
        _env_file=None,
        environment="test",
        openai_api_key="test-openai-key",
        database_url="sqlite::memory:",
    )


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def search() -> FakeSearch:
    return FakeSearch()


@pytest.fixture
def store() -> MemoryCheckpointStore:
    return MemoryCheckpointStore()


@pytest.fixture
def invoker(search: FakeSearch) -> ToolInvoker:
    """Invoker with echo, failing and human-assistance tools registered."""
    return ToolInvoker(
        [EchoTool, FailingTool, HumanAssistanceTool],
        ToolServices(search=search),
    )


@pytest.fixture
def chat_graph(provider: ScriptedProvider, invoker: ToolInvoker, store: MemoryCheckpointStore) -> Graph:
    """The standard chat graph wired to the scripted provider."""
    return create_chat_graph(provider, invoker, store, LLMConfig())


@pytest_asyncio.fixture
async def database():
    """Seeded in-memory SQLite database, closed after the test."""
    db = SQLiteDatabase(":memory:")
    yield db
    await db.close()
