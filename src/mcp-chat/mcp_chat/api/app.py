"""FastAPI application — the HTTP surface of the chat server."""

from collections.abc import Awaitable, Callable
from functools import partial

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from mcp_chat.api.dispatcher import ChatDispatcher
from mcp_chat.api.observer import ApiObserver, StructlogApiObserver
from mcp_chat.api.rate_limit import RATE_LIMITED_MESSAGE, RequestRateLimiter
from mcp_chat.api.schemas import ChatRequest
from mcp_chat.config.domain.config import AppConfig
from mcp_chat.model.infrastructure.errors import ModelCatalogError
from mcp_chat.model.infrastructure.ollama_catalog import OllamaModelCatalog
from mcp_chat.model.infrastructure.observer import StructlogModelObserver
from mcp_chat.model.infrastructure.registry import create_model_invoker
from mcp_chat.orchestration.application.session import SessionLifecycleManager
from mcp_chat.orchestration.infrastructure.observer import (
    StructlogOrchestrationObserver,
)
from mcp_chat.tools.infrastructure.factory import McpToolPoolFactory
from mcp_chat.tools.infrastructure.observer import StructlogToolObserver

HEALTH_MESSAGE = "AI Server API is running"


def build_dispatcher(config: AppConfig, observer: ApiObserver) -> ChatDispatcher:
    """Wire the production dispatcher: LiteLLM invokers, MCP pools, structlog observers."""
    orchestration_observer = StructlogOrchestrationObserver()
    return ChatDispatcher(
        config=config,
        invoker_factory=partial(
            create_model_invoker, observer=StructlogModelObserver()
        ),
        session_manager=SessionLifecycleManager(
            pool_factory=McpToolPoolFactory(observer=StructlogToolObserver()),
            observer=orchestration_observer,
        ),
        orchestration_observer=orchestration_observer,
        observer=observer,
    )


def create_app(
    config: AppConfig,
    dispatcher: ChatDispatcher | None = None,
    catalog: OllamaModelCatalog | None = None,
    observer: ApiObserver | None = None,
) -> FastAPI:
    """Build the FastAPI app for config.

    dispatcher, catalog and observer default to the production wiring; tests
    pass fakes.
    """
    api_observer = observer if observer is not None else StructlogApiObserver()
    chat_dispatcher = (
        dispatcher if dispatcher is not None else build_dispatcher(config, api_observer)
    )
    if catalog is None:
        ollama_base = config.model.api_base if config.model.provider == "ollama" else None
        catalog = OllamaModelCatalog(base_url=ollama_base)

    app = FastAPI(title=config.name)
    if config.server.rate_limit.enabled:
        limiter = RequestRateLimiter(config.server.rate_limit)

        @app.middleware("http")
        async def _rate_limit(
            request: Request, call_next: Callable[[Request], Awaitable[Response]]
        ) -> Response:
            client = request.client.host if request.client is not None else "unknown"
            if not limiter.allow(client):
                api_observer.request_rate_limited(client=client, path=request.url.path)
                return JSONResponse({"error": RATE_LIMITED_MESSAGE}, status_code=429)
            return await call_next(request)

    # Outermost middleware, so 429 responses also carry CORS headers.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        reasons = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        return JSONResponse(
            {"error": f"Invalid request: {reasons}"}, status_code=400
        )

    @app.get("/", response_class=PlainTextResponse)
    async def health() -> str:
        return HEALTH_MESSAGE

    @app.get("/api/config")
    async def model_config() -> dict[str, object]:
        return {
            "provider": config.model.provider,
            "config": {
                "model": config.model.model,
                "stream": config.model.stream,
                "temperature": config.model.temperature,
            },
            "mcp": config.tools_enabled,
        }

    @app.get("/api/models")
    async def list_models(provider: str | None = None) -> Response:
        selected = provider or config.model.provider
        if selected != "ollama":
            return JSONResponse(
                {"error": f"Failed to list models: provider '{selected}' has no catalog"},
                status_code=404,
            )
        try:
            return JSONResponse(await catalog.list_models())
        except ModelCatalogError as exc:
            return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    @app.get("/api/mcpconfig")
    async def mcp_config() -> dict[str, object]:
        # Credentials stay server-side.
        return {
            "mcpServers": {
                name: server.model_dump(mode="json", exclude={"env", "headers"})
                for name, server in config.mcp_servers.items()
            },
        }

    @app.post("/api/chat")
    async def chat(request: ChatRequest, http_request: Request) -> Response:
        return await chat_dispatcher.handle(
            request, is_disconnected=http_request.is_disconnected
        )

    return app
