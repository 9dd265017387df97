"""ModelObserver port — domain events emitted by model invoker implementations."""

from typing import Protocol


class ModelObserver(Protocol):
    def model_request_sent(
        self, model: str, message_count: int, tool_count: int, streaming: bool
    ) -> None: ...

    def model_request_failed(
        self, model: str, reason: str, status_code: int
    ) -> None: ...
