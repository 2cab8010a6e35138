"""Map exceptions to enveloped HTTP error responses.

    400  request validation, malformed config, unsafe SQL
    401  missing or rejected provider credentials
    404  unknown route, agent or thread
    409  new input for a thread that is waiting for a human
    500  anything else
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from chatgraph.api.schemas import failure
from chatgraph.core.errors import (
    AuthenticationError,
    ChatGraphError,
    ThreadInterruptedError,
    ThreadNotFoundError,
    UnsafeQueryError,
    ValidationError,
)
from chatgraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.API)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=failure(message))


def _validation_message(exc: RequestValidationError) -> str:
    details = ", ".join(
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in exc.errors()
    )
    return f"Validation error: {details}"


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error envelope for framework and domain errors."""

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid request to {request.method} {request.url.path}: {exc.errors()}")
        return _error_response(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            return _error_response(404, f"Route {request.method} {request.url.path} not found")
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning(f"Validation error on {request.url.path}: {exc}")
        return _error_response(400, str(exc))

    @app.exception_handler(UnsafeQueryError)
    async def handle_unsafe_query(request: Request, exc: UnsafeQueryError):
        logger.warning(f"Rejected unsafe SQL: {exc.sql}")
        return _error_response(400, f"Database query failed: {exc}")

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        logger.error(f"Authentication error: {exc}")
        return _error_response(
            401, "Authentication error: Invalid or missing API key configuration"
        )

    @app.exception_handler(ThreadNotFoundError)
    async def handle_thread_not_found(request: Request, exc: ThreadNotFoundError):
        logger.warning(str(exc))
        return _error_response(404, str(exc))

    @app.exception_handler(ThreadInterruptedError)
    async def handle_thread_interrupted(request: Request, exc: ThreadInterruptedError):
        logger.warning(str(exc))
        return _error_response(409, str(exc))

    @app.exception_handler(ChatGraphError)
    async def handle_chatgraph_error(request: Request, exc: ChatGraphError):
        logger.error(f"Request to {request.url.path} failed: {exc}")
        return _error_response(500, "Internal server error")

    @app.exception_handler(Exception)
    async def handle_uncaught(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
        return _error_response(500, "Internal server error")
