"""CLI entrypoint for mcp-chat — typer app with `serve`, `chat` and `tools` commands."""

import asyncio
import logging
import sys
from pathlib import Path

import structlog
import typer
import uvicorn

from mcp_chat.api.app import create_app
from mcp_chat.cli.output.stdout_sink import StdoutSink
from mcp_chat.config.domain.config import AppConfig
from mcp_chat.config.infrastructure.observer import StructlogConfigObserver
from mcp_chat.config.infrastructure.yaml_loader import YamlConfigLoader
from mcp_chat.conversation.domain.message import Message
from mcp_chat.core.errors import McpChatError
from mcp_chat.model.infrastructure.observer import StructlogModelObserver
from mcp_chat.model.infrastructure.registry import create_model_invoker
from mcp_chat.orchestration.application.orchestrator import Orchestrator
from mcp_chat.orchestration.application.session import SessionLifecycleManager
from mcp_chat.orchestration.domain.result import OrchestrationResult
from mcp_chat.orchestration.infrastructure.observer import (
    StructlogOrchestrationObserver,
)
from mcp_chat.tools.domain.tool import ToolDefinition
from mcp_chat.tools.infrastructure.factory import McpToolPoolFactory
from mcp_chat.tools.infrastructure.observer import StructlogToolObserver

app = typer.Typer(add_completion=False)

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def _configure_structlog(log_format: str, log_level: str) -> None:
    """Configure structlog based on the requested format and level.

    Logs go to stderr so that streamed replies on stdout stay clean.
    """
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(
            f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.",
            err=True,
        )
        raise typer.Exit(code=1)

    level = _LOG_LEVELS.get(log_level.lower())
    if level is None:
        typer.echo(
            f"Invalid log level: {log_level!r}. "
            f"Must be one of: {', '.join(_LOG_LEVELS)}.",
            err=True,
        )
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


@app.callback()
def main(
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
    log_level: str = typer.Option(
        "info",
        "--log-level",
        help="Minimum log level: debug, info, warning or error",
    ),
) -> None:
    """Conversation orchestration between a chat model and MCP tool servers."""
    _configure_structlog(log_format=log_format, log_level=log_level)


def _load_config(config_path: Path) -> AppConfig:
    loader = YamlConfigLoader(observer=StructlogConfigObserver())
    try:
        return loader.load(path=config_path)
    except McpChatError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


def _session_manager() -> SessionLifecycleManager:
    return SessionLifecycleManager(
        pool_factory=McpToolPoolFactory(observer=StructlogToolObserver()),
        observer=StructlogOrchestrationObserver(),
    )


async def _run_chat(
    config: AppConfig, prompt: str, tool_groups: list[str] | None, stream: bool
) -> OrchestrationResult:
    orchestrator = Orchestrator(
        model_invoker=create_model_invoker(
            config=config.model, observer=StructlogModelObserver()
        ),
        config=config.orchestration,
        observer=StructlogOrchestrationObserver(),
        stream=stream,
    )
    sink = StdoutSink()
    async with _session_manager().open(
        transcript=[Message.user(prompt)],
        tool_groups=config.tool_groups(tool_groups),
    ) as session:
        result = await orchestrator.run(session, sink=sink)
    await sink.end()
    return result


async def _list_tools(
    config: AppConfig, tool_groups: list[str] | None
) -> list[ToolDefinition]:
    pool = await McpToolPoolFactory(observer=StructlogToolObserver()).acquire(
        tool_groups=config.tool_groups(tool_groups)
    )
    try:
        return pool.list_tools()
    finally:
        await pool.close()


@app.command()
def serve(
    config_path: Path = typer.Option(..., "--config", "-c", help="Path to config YAML"),
    host: str | None = typer.Option(None, "--host", help="Override server.host"),
    port: int | None = typer.Option(None, "--port", help="Override server.port"),
) -> None:
    """Serve the chat HTTP API."""
    config = _load_config(config_path=config_path)
    uvicorn.run(
        create_app(config=config),
        host=host or config.server.host,
        port=port or config.server.port,
        log_config=None,
    )


@app.command()
def chat(
    prompt: str = typer.Argument(..., help="User message to send"),
    config_path: Path = typer.Option(..., "--config", "-c", help="Path to config YAML"),
    tool_group: list[str] | None = typer.Option(
        None,
        "--tool-group",
        "-t",
        help="Tool group to enable (repeatable); defaults to the configured groups",
    ),
    no_stream: bool = typer.Option(
        False, "--no-stream", help="Wait for the whole reply instead of streaming"
    ),
) -> None:
    """Run one conversation and print the reply."""
    config = _load_config(config_path=config_path)
    stream = config.model.stream and not no_stream
    try:
        result = asyncio.run(
            _run_chat(
                config=config, prompt=prompt, tool_groups=tool_group, stream=stream
            )
        )
    except KeyboardInterrupt:
        typer.echo("Chat interrupted.", err=True)
        sys.exit(1)
    except McpChatError as exc:
        typer.echo(str(exc), err=True)
        sys.exit(1)

    if result.error is not None:
        typer.echo(str(result.error), err=True)
        sys.exit(1)
    if not stream:
        typer.echo(result.reply)


@app.command()
def tools(
    config_path: Path = typer.Option(..., "--config", "-c", help="Path to config YAML"),
    tool_group: list[str] | None = typer.Option(
        None, "--tool-group", "-t", help="Tool group to list (repeatable)"
    ),
) -> None:
    """Connect to the tool groups and list the tools they declare."""
    config = _load_config(config_path=config_path)
    try:
        definitions = asyncio.run(_list_tools(config=config, tool_groups=tool_group))
    except McpChatError as exc:
        typer.echo(str(exc), err=True)
        sys.exit(1)

    if not definitions:
        typer.echo("No tools available.")
        return
    width = max(len(definition.name) for definition in definitions)
    for definition in definitions:
        typer.echo(f"{definition.name:<{width}}  {definition.description}")


if __name__ == "__main__":
    app()
