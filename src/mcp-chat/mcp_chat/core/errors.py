"""Base exception class for all mcp-chat-specific errors."""


class McpChatError(Exception):
    """Base class for all mcp-chat errors.

    status_code is the HTTP-style status the request dispatcher reports when the
    error ends a request.
    """

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.status_code = status_code
