"""Structlog implementation of the OrchestrationObserver port."""

import structlog


class StructlogOrchestrationObserver:
    """Delegates orchestration domain events to structlog.

    Satisfies the OrchestrationObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def session_opened(
        self, session_id: str, tool_groups: list[str], message_count: int
    ) -> None:
        self._log.info(
            "session.opened",
            session_id=session_id,
            tool_groups=tool_groups,
            message_count=message_count,
        )

    def session_released(self, session_id: str, state: str) -> None:
        self._log.info("session.released", session_id=session_id, state=state)

    def session_release_failed(self, session_id: str, reason: str) -> None:
        self._log.error(
            "session.release_failed", session_id=session_id, reason=reason
        )

    def model_turn_started(self, session_id: str, turn: int, streaming: bool) -> None:
        self._log.debug(
            "orchestration.model_turn_started",
            session_id=session_id,
            turn=turn,
            streaming=streaming,
        )

    def model_turn_completed(
        self, session_id: str, turn: int, tool_call_count: int, duration_ms: int
    ) -> None:
        self._log.info(
            "orchestration.model_turn_completed",
            session_id=session_id,
            turn=turn,
            tool_call_count=tool_call_count,
            duration_ms=duration_ms,
        )

    def turn_failed(self, session_id: str, turn: int, reason: str) -> None:
        self._log.error(
            "orchestration.turn_failed",
            session_id=session_id,
            turn=turn,
            reason=reason,
        )

    def tool_call_started(
        self, session_id: str, tool_call_id: str, tool_name: str
    ) -> None:
        self._log.info(
            "tool.call_started",
            session_id=session_id,
            tool_call_id=tool_call_id,
            tool_name=tool_name,
        )

    def tool_call_completed(
        self,
        session_id: str,
        tool_call_id: str,
        tool_name: str,
        duration_ms: int,
        is_error: bool,
    ) -> None:
        log = self._log.warning if is_error else self._log.info
        log(
            "tool.call_completed",
            session_id=session_id,
            tool_call_id=tool_call_id,
            tool_name=tool_name,
            duration_ms=duration_ms,
            is_error=is_error,
        )

    def orchestration_finished(
        self, session_id: str, state: str, model_calls: int
    ) -> None:
        self._log.info(
            "orchestration.finished",
            session_id=session_id,
            state=state,
            model_calls=model_calls,
        )
