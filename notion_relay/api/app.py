"""FastAPI application factory for the relay."""

from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notion_relay import __version__
from notion_relay.api import routes
from notion_relay.api.errors import error_response
from notion_relay.api.services import build_services
from notion_relay.models.config import AppConfig
from notion_relay.utils.errors import InternalError, MissingParameterError, RelayError

log = structlog.stdlib.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    relay = app.state.services

    if relay.scheduler is not None:
        relay.scheduler.start()

    log.info(
        "relay_started",
        auto_sync=relay.scheduler is not None,
        port=relay.config.server.port,
    )

    try:
        yield
    finally:
        if relay.scheduler is not None:
            await relay.scheduler.stop()
        await relay.client.aclose()
        log.info("relay_stopped")


def create_app(
    config: AppConfig | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """
    Create the relay application.

    Args:
        config: Relay configuration (defaults from environment when None)
        http_client: Optional httpx client for the upstream API

    Returns:
        Configured FastAPI app with fresh in-memory sync state
    """
    config = config or AppConfig()

    app = FastAPI(
        title=config.server.name,
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = build_services(config, http_client=http_client)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_origin_regex=config.server.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "x-notion-api-key"],
        expose_headers=["Content-Length", "Content-Type"],
        max_age=86400,
    )

    app.include_router(routes.router)

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
        log.warning(
            "request_failed",
            method=request.method,
            path=request.url.path,
            kind=exc.kind,
            error=exc.message,
            code=exc.code,
        )
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return error_response(MissingParameterError(f"Invalid request: {exc.errors()}"))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        log.exception(
            "unhandled_exception",
            method=request.method,
            path=request.url.path,
        )
        return error_response(InternalError(f"Internal server error: {exc}"))

    return app
