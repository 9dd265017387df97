"""Error types raised while serving chat requests."""

from mcp_chat.core.errors import McpChatError


class ChatAbortedError(McpChatError):
    """Reported in place of an unexpected exception that ended a streamed chat."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to complete chat: {reason}")
