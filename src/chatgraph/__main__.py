"""Command line entry point.

    python -m chatgraph serve            # run the HTTP API with uvicorn
    python -m chatgraph chat             # chat in the console
"""

import argparse
import asyncio
import sys
from typing import List, Optional

import uvicorn

from chatgraph.api.app import create_app
from chatgraph.core.agent.registry import AgentRegistry
from chatgraph.core.config import LLMConfig, Settings
from chatgraph.core.errors import ValidationError
from chatgraph.core.graph.checkpoint import MemoryCheckpointStore
from chatgraph.core.logging import configure_logging, get_logger, LogComponent, LogLevel
from chatgraph.core.runtime import LocalRuntime, RuntimeConfig

logger = get_logger(LogComponent.RUNTIME)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chatgraph", description=__doc__.splitlines()[0])
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    chat = subparsers.add_parser("chat", help="Chat with the agent in the console")
    chat.add_argument("--model", default=LLMConfig().model, help="provider/model string")
    chat.add_argument("--temperature", type=float, default=0.7)
    chat.add_argument("--context", default=None, help="Extra context for the system message")
    return parser


async def _chat(settings: Settings, args: argparse.Namespace) -> None:
    registry = AgentRegistry.create_default(settings, MemoryCheckpointStore())
    runtime = LocalRuntime(
        registry.chat_agent,
        RuntimeConfig(
            llm=LLMConfig(model=args.model, temperature=args.temperature),
            extra_context=args.context,
        ),
    )
    try:
        await runtime.start()
    finally:
        await registry.database_agent.database.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = Settings()

    configure_logging(
        default_level=LogLevel.from_name(args.log_level or settings.log_level),
        log_file=settings.log_file,
    )

    try:
        settings.validate_environment()
    except ValidationError as e:
        logger.error(str(e))
        return 1

    if args.command == "serve":
        app = create_app(settings)
        uvicorn.run(
            app,
            host=args.host or settings.host,
            port=args.port or settings.port,
            log_config=None,
        )
    else:
        asyncio.run(_chat(settings, args))
    return 0


if __name__ == "__main__":
    sys.exit(main())
