"""FastAPI application factory."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from chatgraph import __version__
from chatgraph.api.errors import register_exception_handlers
from chatgraph.api.routes import agents_router, database_router, interrupts_router
from chatgraph.api.schemas import success
from chatgraph.core.agent.chat import ProviderFactory
from chatgraph.core.agent.registry import AgentRegistry
from chatgraph.core.config import Settings
from chatgraph.core.graph.checkpoint import CheckpointStore, MemoryCheckpointStore
from chatgraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.API)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings
    logger.info(f"Starting chatgraph API on port {settings.port} ({settings.environment})")
    yield
    await app.state.registry.database_agent.database.close()
    logger.info("Shut down chatgraph API")


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CheckpointStore] = None,
    provider_factory: Optional[ProviderFactory] = None,
    registry: Optional[AgentRegistry] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The checkpoint store is created here once and shared by every request,
    so suspended threads survive between the chat and resume calls.
    """
    settings = settings or Settings()
    if store is None:
        store = MemoryCheckpointStore()
    registry = registry or AgentRegistry.create_default(settings, store, provider_factory)

    app = FastAPI(
        title="chatgraph API",
        description="Conversational agent backend with human-in-the-loop workflows",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.registry = registry

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in settings.cors_origin.split(",")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(f"{request.method} {request.url.path}")
        return await call_next(request)

    register_exception_handlers(app)
    app.include_router(agents_router)
    app.include_router(interrupts_router)
    app.include_router(database_router)

    @app.get("/health")
    async def health_check():
        return success({"status": "healthy", "version": __version__})

    @app.get("/")
    async def root():
        return success({
            "message": "chatgraph API Server",
            "version": __version__,
            "endpoints": {
                "health": "/health",
                "agents": "/api/agents",
                "interrupts": "/api/interrupts",
                "database": "/api/database",
            },
        })

    return app
