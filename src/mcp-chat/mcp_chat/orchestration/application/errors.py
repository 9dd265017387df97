"""Error types raised by the orchestration loop."""

from mcp_chat.core.errors import McpChatError


class MaxTurnsExceededError(McpChatError):
    """Raised when a Session would need more model invocations than allowed."""

    def __init__(self, max_turns: int) -> None:
        super().__init__(
            f"Failed to finish conversation: model still requesting tools after"
            f" {max_turns} turns"
        )


class SinkWriteError(McpChatError):
    """Raised when output cannot be written to the caller-facing sink."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to write output: {reason}")
