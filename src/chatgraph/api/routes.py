"""API routers: agents, interrupts and database."""

from fastapi import APIRouter, HTTPException, Request

from chatgraph.api.schemas import ChatRequest, DatabaseQueryRequest, ResumeRequest, success, timestamp
from chatgraph.core.agent.chat import ChatAgent
from chatgraph.core.agent.registry import AgentRegistry
from chatgraph.core.errors import ValidationError
from chatgraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.API)

agents_router = APIRouter(prefix="/api/agents", tags=["agents"])
interrupts_router = APIRouter(prefix="/api/interrupts", tags=["interrupts"])
database_router = APIRouter(prefix="/api/database", tags=["database"])


def _registry(request: Request) -> AgentRegistry:
    return request.app.state.registry


def _get_agent(request: Request, agent_id: str):
    agent = _registry(request).get(agent_id)
    if agent is None:
        raise HTTPException(status_code=404, detail=f"Agent not found: {agent_id}")
    return agent


def _get_chat_agent(request: Request, agent_id: str) -> ChatAgent:
    agent = _get_agent(request, agent_id)
    if not isinstance(agent, ChatAgent):
        raise ValidationError(f"Agent {agent_id} does not support chat")
    return agent


@agents_router.get("")
async def list_agents(request: Request):
    return success(_registry(request).list_metadata())


@agents_router.get("/{agent_id}")
async def get_agent(request: Request, agent_id: str):
    return success(_get_agent(request, agent_id).get_metadata())


@agents_router.get("/{agent_id}/graph")
async def get_agent_graph(request: Request, agent_id: str):
    agent = _get_agent(request, agent_id)
    return success({
        "agentId": agent_id,
        "graph": agent.get_graph_metadata(),
        "generatedAt": timestamp(),
    })


@agents_router.post("/{agent_id}/chat")
async def chat(request: Request, agent_id: str, body: ChatRequest):
    agent = _get_chat_agent(request, agent_id)
    result = await agent.execute(
        {"input_text": body.input_text, "extra_context": body.extra_context},
        body.config,
        thread_id=body.thread_id,
    )
    return success(result)


@interrupts_router.post("/agents/{agent_id}/threads/{thread_id}/resume")
async def resume_thread(request: Request, agent_id: str, thread_id: str, body: ResumeRequest):
    agent = _get_chat_agent(request, agent_id)
    logger.info(
        f"Resuming thread {thread_id} on {agent_id} "
        f"(response length {len(body.human_response)})"
    )
    result = await agent.resume_execution(thread_id, body.human_response)

    data = result.model_dump(mode="json")
    data["metadata"] = {**data["metadata"], **(body.metadata or {})}
    return success(data)


@database_router.post("/query")
async def query_database(request: Request, body: DatabaseQueryRequest):
    preview = body.query[:100] + ("..." if len(body.query) > 100 else "")
    logger.info(f"Database query request: {preview}")
    result = await _registry(request).database_agent.execute(
        {
            "query": body.query,
            "table_context": body.table_context,
            "max_results": body.max_results,
        },
        body.config,
    )
    return success(result)


@database_router.get("/schema")
async def get_schema(request: Request):
    schema = await _registry(request).database_agent.get_schema()
    return success({"schema": schema})


@database_router.get("/test")
async def test_connection(request: Request):
    connected = await _registry(request).database_agent.test_connection()
    return success({
        "connected": connected,
        "message": "Database connection successful" if connected else "Database connection failed",
    })


@database_router.get("/graph")
async def get_database_graph(request: Request):
    database_agent = _registry(request).database_agent
    return success({
        "agentId": database_agent.get_metadata().id,
        "graph": database_agent.get_graph_metadata(),
        "generatedAt": timestamp(),
    })
