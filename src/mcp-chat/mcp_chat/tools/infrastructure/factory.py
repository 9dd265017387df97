"""McpToolPoolFactory — connects MCP tool groups and builds McpToolExecutorPool instances."""

from contextlib import AsyncExitStack

from mcp import ClientSession, StdioServerParameters
from mcp.client.sse import sse_client
from mcp.client.stdio import stdio_client
from mcp.client.streamable_http import streamablehttp_client

from mcp_chat.config.domain.mcp_server import (
    HttpMcpServer,
    McpServer,
    SseMcpServer,
    StdioMcpServer,
)
from mcp_chat.config.domain.tool_group import ToolGroup
from mcp_chat.tools.domain.observer import ToolObserver
from mcp_chat.tools.domain.pool import ToolExecutorPool
from mcp_chat.tools.domain.tool import ToolDefinition
from mcp_chat.tools.infrastructure.errors import ToolPoolAcquisitionError
from mcp_chat.tools.infrastructure.mcp_pool import (
    McpCallSession,
    McpToolExecutorPool,
    ToolRoute,
)


class McpToolPoolFactory:
    """Creates one McpToolExecutorPool per Session from the enabled tool groups.

    Transports and sessions are entered on the pool's exit stack, so the pool
    must be closed from the same task that acquired it.
    """

    def __init__(self, observer: ToolObserver) -> None:
        self._observer = observer

    async def acquire(self, tool_groups: list[ToolGroup]) -> ToolExecutorPool:
        """Connect every group, list its tools, and return the pool.

        Raises:
            ToolPoolAcquisitionError: if any group fails to connect or list tools.
                Groups already connected are closed before raising.
        """
        exit_stack = AsyncExitStack()
        sessions: dict[str, McpCallSession] = {}
        routes: dict[str, ToolRoute] = {}

        try:
            for group in tool_groups:
                try:
                    session = await self._open_session(exit_stack, group.config)
                    listed = await session.list_tools()
                except Exception as exc:
                    reason = str(exc) or type(exc).__name__
                    self._observer.tool_group_connect_failed(
                        group=group.name, reason=reason
                    )
                    raise ToolPoolAcquisitionError(group=group.name, reason=reason) from exc

                sessions[group.name] = session
                for tool in listed.tools:
                    existing = routes.get(tool.name)
                    if existing is not None:
                        self._observer.tool_name_conflict(
                            tool_name=tool.name,
                            kept_group=existing.group,
                            ignored_group=group.name,
                        )
                        continue
                    routes[tool.name] = ToolRoute(
                        group=group.name,
                        definition=ToolDefinition(
                            name=tool.name,
                            description=tool.description or "",
                            input_schema=tool.inputSchema,
                        ),
                    )
                self._observer.tool_group_connected(
                    group=group.name, tool_count=len(listed.tools)
                )
        except BaseException:
            await exit_stack.aclose()
            raise

        return McpToolExecutorPool(
            exit_stack=exit_stack,
            sessions=sessions,
            routes=routes,
            observer=self._observer,
        )

    async def _open_session(
        self, exit_stack: AsyncExitStack, config: McpServer
    ) -> ClientSession:
        """Open the transport for config and an initialized ClientSession over it."""
        if isinstance(config, StdioMcpServer):
            params = StdioServerParameters(
                command=config.command,
                args=list(config.args),
                env=dict(config.env) or None,
                cwd=config.cwd,
            )
            read, write = await exit_stack.enter_async_context(stdio_client(params))
        elif isinstance(config, SseMcpServer):
            read, write = await exit_stack.enter_async_context(
                sse_client(config.url, headers=dict(config.headers) or None)
            )
        elif isinstance(config, HttpMcpServer):
            read, write, _ = await exit_stack.enter_async_context(
                streamablehttp_client(config.url, headers=dict(config.headers) or None)
            )
        else:
            raise ValueError(f"unsupported MCP server type: {type(config).__name__}")

        session = await exit_stack.enter_async_context(ClientSession(read, write))
        await session.initialize()
        return session
