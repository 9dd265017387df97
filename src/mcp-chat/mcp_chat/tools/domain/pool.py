"""ToolExecutorPool and ToolPoolFactory Protocols — the tool execution ports."""

from typing import Any, Protocol

from mcp_chat.config.domain.tool_group import ToolGroup
from mcp_chat.tools.domain.tool import ToolDefinition, ToolOutput


class ToolExecutorPool(Protocol):
    """A live connection to one or more tool servers, owned by a single Session."""

    def list_tools(self) -> list[ToolDefinition]: ...

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolOutput:
        """Execute a tool.

        Raises:
            ToolInvocationError: if the tool cannot be reached or is unknown.
        """
        ...

    async def close(self) -> None:
        """Release every underlying connection. Safe to call more than once."""
        ...


class ToolPoolFactory(Protocol):
    """Acquires a ToolExecutorPool for the given tool groups."""

    async def acquire(self, tool_groups: list[ToolGroup]) -> ToolExecutorPool: ...
