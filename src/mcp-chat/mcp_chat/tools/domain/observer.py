"""ToolObserver port — domain events emitted by tool pool implementations."""

from typing import Protocol


class ToolObserver(Protocol):
    """Observer port for tool pool events.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def tool_group_connected(self, group: str, tool_count: int) -> None: ...

    def tool_group_connect_failed(self, group: str, reason: str) -> None: ...

    def tool_name_conflict(
        self, tool_name: str, kept_group: str, ignored_group: str
    ) -> None: ...

    def tool_pool_closed(self, group_count: int) -> None: ...
