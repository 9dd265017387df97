"""Error types raised by tool pool infrastructure."""

from mcp_chat.core.errors import McpChatError


class ToolInvocationError(McpChatError):
    """Raised when a tool cannot be executed.

    reason is the bare failure description, without the "Failed to" prefix.
    """

    def __init__(self, tool_name: str, reason: str) -> None:
        self.tool_name = tool_name
        self.reason = reason
        super().__init__(f"Failed to invoke tool '{tool_name}': {reason}")


class UnknownToolError(ToolInvocationError):
    """Raised when the model requests a tool no connected group provides."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(tool_name=tool_name, reason=f"unknown tool '{tool_name}'")


class ToolPoolAcquisitionError(McpChatError):
    """Raised when a tool group cannot be connected while acquiring a pool."""

    def __init__(self, group: str, reason: str) -> None:
        self.group = group
        super().__init__(
            f"Failed to acquire tool pool: group '{group}': {reason}",
            status_code=503,
        )
