"""McpToolExecutorPool — tool executor pool backed by MCP client sessions."""

from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import Any, Protocol

from mcp.types import CallToolResult, TextContent

from mcp_chat.tools.domain.observer import ToolObserver
from mcp_chat.tools.domain.tool import ToolDefinition, ToolOutput
from mcp_chat.tools.infrastructure.errors import ToolInvocationError, UnknownToolError


class McpCallSession(Protocol):
    """The part of mcp.ClientSession the pool uses after initialization."""

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None = None
    ) -> CallToolResult: ...


@dataclass(frozen=True)
class ToolRoute:
    """Which group serves a tool, and the tool's declared definition."""

    group: str
    definition: ToolDefinition


class McpToolExecutorPool:
    """Routes tool calls by name to the MCP session of the group that declared it.

    Owns the exit stack holding every transport and session it was built from;
    close() unwinds it. Built by McpToolPoolFactory, one per Session.
    """

    def __init__(
        self,
        exit_stack: AsyncExitStack,
        sessions: dict[str, McpCallSession],
        routes: dict[str, ToolRoute],
        observer: ToolObserver,
    ) -> None:
        self._exit_stack = exit_stack
        self._sessions = sessions
        self._routes = routes
        self._observer = observer
        self._closed = False

    def list_tools(self) -> list[ToolDefinition]:
        return [route.definition for route in self._routes.values()]

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolOutput:
        """Execute a tool on the group that provides it.

        Raises:
            UnknownToolError: if no group declared a tool with this name.
            ToolInvocationError: if the pool is closed or the MCP call fails.
        """
        route = self._routes.get(name)
        if route is None:
            raise UnknownToolError(tool_name=name)
        if self._closed:
            raise ToolInvocationError(tool_name=name, reason="tool pool is closed")

        session = self._sessions[route.group]
        try:
            result = await session.call_tool(name, arguments)
        except Exception as exc:
            raise ToolInvocationError(
                tool_name=name, reason=str(exc) or type(exc).__name__
            ) from exc

        return ToolOutput(content=render_content(result), is_error=bool(result.isError))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._exit_stack.aclose()
        self._observer.tool_pool_closed(group_count=len(self._sessions))


def render_content(result: CallToolResult) -> str:
    """Flatten MCP content blocks to text: text blocks verbatim, others as JSON."""
    parts: list[str] = []
    for block in result.content:
        if isinstance(block, TextContent):
            parts.append(block.text)
        else:
            parts.append(block.model_dump_json(exclude_none=True))
    return "\n".join(parts)
