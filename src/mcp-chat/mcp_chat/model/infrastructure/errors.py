"""Error types raised by model infrastructure."""

from mcp_chat.core.errors import McpChatError


class ModelInvocationError(McpChatError):
    """Raised when the model provider cannot be invoked or returns an error response.

    status_code carries the provider's HTTP status when it reported one.
    """

    def __init__(self, reason: str, status_code: int = 500) -> None:
        self.reason = reason
        super().__init__(f"Failed to invoke model: {reason}", status_code=status_code)


class ModelTimeoutError(ModelInvocationError):
    """Raised when a model invocation does not finish within its timeout."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(
            f"no response within {timeout_seconds:g}s", status_code=504
        )


class ModelProviderNotSupportedError(McpChatError):
    """Raised when the provider named in config is not a known provider."""

    def __init__(self, provider: str, supported: list[str]) -> None:
        super().__init__(
            f"Failed to create model invoker: unsupported provider '{provider}'"
            f" (supported: {', '.join(supported)})"
        )


class ModelCatalogError(McpChatError):
    """Raised when the provider's model listing cannot be fetched."""

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(
            f"Failed to list models from {provider}: {reason}", status_code=404
        )
