"""Structlog implementation of the ModelObserver port."""

import structlog


class StructlogModelObserver:
    """Delegates model domain events to structlog.

    Satisfies the ModelObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def model_request_sent(
        self, model: str, message_count: int, tool_count: int, streaming: bool
    ) -> None:
        self._log.debug(
            "model.request_sent",
            model=model,
            message_count=message_count,
            tool_count=tool_count,
            streaming=streaming,
        )

    def model_request_failed(self, model: str, reason: str, status_code: int) -> None:
        self._log.error(
            "model.request_failed",
            model=model,
            reason=reason,
            status_code=status_code,
        )
