"""Error types raised by the config domain."""

from mcp_chat.core.errors import McpChatError


class UnknownToolGroupError(McpChatError):
    """Raised when tool groups are requested that no configured MCP server provides."""

    def __init__(self, names: list[str]) -> None:
        self.names = names
        super().__init__(
            f"Failed to start session: unknown tool groups: {', '.join(names)}",
            status_code=400,
        )
