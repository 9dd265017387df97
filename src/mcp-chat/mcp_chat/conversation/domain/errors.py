"""Error types raised while validating transcripts and reading model output."""

from mcp_chat.core.errors import McpChatError


class EmptyTranscriptError(McpChatError):
    """Raised when a chat request carries no messages."""

    def __init__(self) -> None:
        super().__init__("Failed to start session: no messages provided", status_code=400)


class InvalidTranscriptError(McpChatError):
    """Raised when a transcript is structurally inconsistent."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to start session: {reason}", status_code=400)


class ModelOutputError(McpChatError):
    """Raised when the model produces output that cannot be turned into a Message."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to read model output: {reason}", status_code=502)
