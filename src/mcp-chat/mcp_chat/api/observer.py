"""ApiObserver port and its structlog implementation — request-level events."""

from typing import Protocol

import structlog


class ApiObserver(Protocol):
    def chat_request_received(
        self, message_count: int, streaming: bool, tool_groups: list[str]
    ) -> None: ...

    def chat_request_failed(self, status_code: int, reason: str) -> None: ...

    def chat_stream_disconnected(self) -> None: ...

    def request_rate_limited(self, client: str, path: str) -> None: ...


class StructlogApiObserver:
    """Delegates API events to structlog.

    Satisfies the ApiObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def chat_request_received(
        self, message_count: int, streaming: bool, tool_groups: list[str]
    ) -> None:
        self._log.info(
            "api.chat_request_received",
            message_count=message_count,
            streaming=streaming,
            tool_groups=tool_groups,
        )

    def chat_request_failed(self, status_code: int, reason: str) -> None:
        self._log.warning(
            "api.chat_request_failed", status_code=status_code, reason=reason
        )

    def chat_stream_disconnected(self) -> None:
        self._log.info("api.chat_stream_disconnected")

    def request_rate_limited(self, client: str, path: str) -> None:
        self._log.warning("api.request_rate_limited", client=client, path=path)
