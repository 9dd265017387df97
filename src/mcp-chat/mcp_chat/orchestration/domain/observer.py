"""OrchestrationObserver port — session lifecycle and turn-loop events."""

from typing import Protocol


class OrchestrationObserver(Protocol):
    """Observer port for orchestration domain events.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def session_opened(
        self, session_id: str, tool_groups: list[str], message_count: int
    ) -> None: ...

    def session_released(self, session_id: str, state: str) -> None: ...

    def session_release_failed(self, session_id: str, reason: str) -> None: ...

    def model_turn_started(self, session_id: str, turn: int, streaming: bool) -> None: ...

    def model_turn_completed(
        self, session_id: str, turn: int, tool_call_count: int, duration_ms: int
    ) -> None: ...

    def turn_failed(self, session_id: str, turn: int, reason: str) -> None: ...

    def tool_call_started(
        self, session_id: str, tool_call_id: str, tool_name: str
    ) -> None: ...

    def tool_call_completed(
        self,
        session_id: str,
        tool_call_id: str,
        tool_name: str,
        duration_ms: int,
        is_error: bool,
    ) -> None: ...

    def orchestration_finished(
        self, session_id: str, state: str, model_calls: int
    ) -> None: ...
