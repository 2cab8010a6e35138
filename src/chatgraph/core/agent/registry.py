"""Registry of the agents the service exposes.

Example:
    ```python
    registry = AgentRegistry.create_default(settings, MemoryCheckpointStore())
    [meta.id for meta in registry.list_metadata()]  # ["chat_agent", "database_agent"]
    ```
"""

from typing import Any, Dict, List, Optional, Union

from chatgraph.core.agent.chat import AgentMetadata, ChatAgent, ProviderFactory, validate_payload
from chatgraph.core.agent.provider import create_provider
from chatgraph.core.config import DatabaseAgentConfig, Settings
from chatgraph.core.database import DatabaseAgent, DatabaseConnection, DatabaseQuery, DatabaseResult, SQLiteDatabase
from chatgraph.core.graph.checkpoint import CheckpointStore
from chatgraph.core.logging import get_logger, LogComponent
from chatgraph.core.tools import TavilySearch, ToolServices

logger = get_logger(LogComponent.AGENT)

# Settings used when the chat model queries the database through a tool
TOOL_DATABASE_CONFIG = DatabaseAgentConfig(
    temperature=0.1,
    allow_write_operations=False,
    max_execution_time=15.0,
)


class DatabaseAgentService:
    """Registry entry for the natural-language-to-SQL agent."""

    metadata = AgentMetadata(
        id="database_agent",
        name="Database Agent",
        description="Natural language to SQL conversion and database query execution agent",
        capabilities=[
            "Natural language to SQL conversion",
            "Safe database query execution",
            "Schema analysis and understanding",
            "Result formatting and explanation",
            "Read-only operations by default",
        ],
    )

    def __init__(
        self,
        database: DatabaseConnection,
        settings: Settings,
        provider_factory: Optional[ProviderFactory] = None,
    ) -> None:
        self.database = database
        self.settings = settings
        self.provider_factory = provider_factory or create_provider

    def get_metadata(self) -> AgentMetadata:
        return self.metadata

    def create_agent(self, config: Optional[DatabaseAgentConfig] = None) -> DatabaseAgent:
        config = config or DatabaseAgentConfig()
        provider = self.provider_factory(config.llm_config(), self.settings)
        return DatabaseAgent(self.database, provider, config)

    async def execute(
        self,
        query: Union[DatabaseQuery, Dict[str, Any]],
        config: Union[DatabaseAgentConfig, Dict[str, Any], None] = None,
    ) -> DatabaseResult:
        """Answer one database question.

        Raises:
            ValidationError: If the query or configuration is malformed
            UnsafeQueryError: If the generated statement writes and writes are disallowed
        """
        query = validate_payload(DatabaseQuery, query, "database query")
        agent_config = validate_payload(DatabaseAgentConfig, config or {}, "database configuration")
        return await self.create_agent(agent_config).process_query(query)

    def get_graph_metadata(self) -> Dict[str, Any]:
        steps = ["analyze_schema", "generate_sql", "execute_query", "format_results"]
        return {
            "nodes": [{"id": step, "type": "DatabaseAgent", "description": ""} for step in steps],
            "edges": [
                {"from": source, "to": target}
                for source, target in zip(steps, steps[1:])
            ],
            "conditional_edges": [],
            "entry_points": {"default": steps[0]},
        }

    async def get_schema(self) -> str:
        return await self.database.get_schema()

    async def test_connection(self) -> bool:
        return await self.create_agent().test_connection()


class AgentRegistry:
    """Agents available to the API, keyed by id."""

    def __init__(self) -> None:
        self._agents: Dict[str, Any] = {}

    @classmethod
    def create_default(
        cls,
        settings: Settings,
        store: CheckpointStore,
        provider_factory: Optional[ProviderFactory] = None,
        database: Optional[DatabaseConnection] = None,
        search: Optional[Any] = None,
    ) -> "AgentRegistry":
        """Register the chat agent and the database agent sharing one database."""
        database = database or SQLiteDatabase(settings.database_path)
        database_service = DatabaseAgentService(database, settings, provider_factory)
        services = ToolServices(
            search=search or TavilySearch(settings.tavily_api_key),
            database=database_service.create_agent(TOOL_DATABASE_CONFIG),
        )

        registry = cls()
        registry.register(ChatAgent(settings, store, provider_factory, services))
        registry.register(database_service)
        return registry

    def register(self, agent: Any) -> None:
        metadata = agent.get_metadata()
        self._agents[metadata.id] = agent
        logger.info(f"Registered agent: {metadata.id}")

    def get(self, agent_id: str) -> Optional[Any]:
        return self._agents.get(agent_id)

    def has(self, agent_id: str) -> bool:
        return agent_id in self._agents

    def remove(self, agent_id: str) -> bool:
        removed = self._agents.pop(agent_id, None) is not None
        if removed:
            logger.info(f"Removed agent: {agent_id}")
        return removed

    def list_metadata(self) -> List[AgentMetadata]:
        return [agent.get_metadata() for agent in self._agents.values()]

    def get_metadata(self, agent_id: str) -> Optional[AgentMetadata]:
        agent = self._agents.get(agent_id)
        return agent.get_metadata() if agent else None

    @property
    def chat_agent(self) -> ChatAgent:
        return self._agents["chat_agent"]

    @property
    def database_agent(self) -> DatabaseAgentService:
        return self._agents["database_agent"]
