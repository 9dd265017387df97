"""Structlog implementation of the ToolObserver port."""

import structlog


class StructlogToolObserver:
    """Delegates tool pool events to structlog.

    Satisfies the ToolObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def tool_group_connected(self, group: str, tool_count: int) -> None:
        self._log.info("tool.group_connected", group=group, tool_count=tool_count)

    def tool_group_connect_failed(self, group: str, reason: str) -> None:
        self._log.error("tool.group_connect_failed", group=group, reason=reason)

    def tool_name_conflict(
        self, tool_name: str, kept_group: str, ignored_group: str
    ) -> None:
        self._log.warning(
            "tool.name_conflict",
            tool_name=tool_name,
            kept_group=kept_group,
            ignored_group=ignored_group,
        )

    def tool_pool_closed(self, group_count: int) -> None:
        self._log.info("tool.pool_closed", group_count=group_count)
