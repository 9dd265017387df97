"""ToolGroup — a named MCP server enabled for one Session."""

from pydantic.dataclasses import dataclass

from mcp_chat.config.domain.mcp_server import McpServer


@dataclass(frozen=True)
class ToolGroup:
    """A resolved tool group: the configured server name paired with its connection config."""

    name: str
    config: McpServer
