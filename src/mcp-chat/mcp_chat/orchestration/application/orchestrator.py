"""Orchestrator — the turn-taking loop between the model and the tool pool."""

import asyncio
import time

from mcp_chat.config.domain.orchestration import OrchestrationConfig
from mcp_chat.conversation.domain.errors import ModelOutputError
from mcp_chat.conversation.domain.message import Message, Role, ToolCallRequest
from mcp_chat.core.errors import McpChatError
from mcp_chat.model.domain.invoker import ModelInvoker
from mcp_chat.model.infrastructure.errors import ModelInvocationError, ModelTimeoutError
from mcp_chat.orchestration.application.errors import (
    MaxTurnsExceededError,
    SinkWriteError,
)
from mcp_chat.orchestration.application.session import Session
from mcp_chat.orchestration.application.stream_merger import (
    StreamMerger,
    write_to_sink,
)
from mcp_chat.orchestration.domain.observer import OrchestrationObserver
from mcp_chat.orchestration.domain.result import OrchestrationResult
from mcp_chat.orchestration.domain.sink import OutputSink
from mcp_chat.orchestration.domain.state import (
    OrchestrationState,
    after_failure,
    after_model_response,
    after_tool_results,
)
from mcp_chat.tools.domain.tool import ToolDefinition
from mcp_chat.tools.infrastructure.errors import ToolInvocationError

# Errors that end a run in FAILED rather than propagating to the caller.
_FATAL_RUN_ERRORS = (
    ModelInvocationError,
    ModelOutputError,
    MaxTurnsExceededError,
    SinkWriteError,
)


class Orchestrator:
    """Drives one Session from AWAITING_MODEL to DONE or FAILED.

    Each loop iteration performs exactly one transition. Model failures, malformed
    model output, sink failures and the turn cap end the run in FAILED; tool
    failures are fed back to the model as error-bearing tool results. The
    orchestrator writes to the sink but never ends it; the sink's owner does.
    """

    def __init__(
        self,
        model_invoker: ModelInvoker,
        config: OrchestrationConfig,
        observer: OrchestrationObserver,
        stream: bool = True,
        merger: StreamMerger | None = None,
    ) -> None:
        self._model_invoker = model_invoker
        self._config = config
        self._observer = observer
        self._stream = stream
        self._merger = merger if merger is not None else StreamMerger()

    async def run(
        self, session: Session, sink: OutputSink | None = None
    ) -> OrchestrationResult:
        """Run the loop to a terminal state and return the result.

        Streaming is used when the orchestrator was built with stream=True and a
        sink is given; otherwise each model turn is a single-shot invocation and
        nothing is written to the sink.
        """
        live_sink = sink if self._stream else None
        tools = session.pool.list_tools() or None
        initial_length = len(session.transcript)
        model_calls = 0
        error: McpChatError | None = None
        session.state = OrchestrationState.AWAITING_MODEL

        while not session.state.is_terminal:
            try:
                if session.state is OrchestrationState.AWAITING_MODEL:
                    if model_calls >= self._config.max_turns:
                        raise MaxTurnsExceededError(max_turns=self._config.max_turns)
                    model_calls += 1
                    message = await self._model_turn(
                        session=session, tools=tools, sink=live_sink, turn=model_calls
                    )
                    session.append(message)
                    session.state = after_model_response(message)
                else:
                    await self._tool_turn(session=session, sink=live_sink)
                    session.state = after_tool_results()
            except _FATAL_RUN_ERRORS as exc:
                self._observer.turn_failed(
                    session_id=session.session_id, turn=model_calls, reason=str(exc)
                )
                error = exc
                session.state = after_failure()

        self._observer.orchestration_finished(
            session_id=session.session_id,
            state=session.state.value,
            model_calls=model_calls,
        )
        return OrchestrationResult(
            session_id=session.session_id,
            state=session.state,
            transcript=tuple(session.transcript),
            initial_length=initial_length,
            model_calls=model_calls,
            error=error,
        )

    async def _model_turn(
        self,
        session: Session,
        tools: list[ToolDefinition] | None,
        sink: OutputSink | None,
        turn: int,
    ) -> Message:
        """Invoke the model once, streaming through the merger when a sink is live.

        Raises:
            ModelTimeoutError: if the whole invocation exceeds model_timeout_seconds.
        """
        self._observer.model_turn_started(
            session_id=session.session_id, turn=turn, streaming=sink is not None
        )
        transcript = self._model_view(session.transcript)
        timeout = self._config.model_timeout_seconds
        started = time.monotonic()
        try:
            async with asyncio.timeout(timeout):
                if sink is not None:
                    message = await self._merger.merge(
                        self._model_invoker.stream(transcript, tools), sink
                    )
                else:
                    message = await self._model_invoker.invoke(transcript, tools)
        except TimeoutError as exc:
            raise ModelTimeoutError(timeout_seconds=timeout) from exc

        self._observer.model_turn_completed(
            session_id=session.session_id,
            turn=turn,
            tool_call_count=len(message.tool_calls),
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        return message

    async def _tool_turn(self, session: Session, sink: OutputSink | None) -> None:
        """Run every requested tool call in request order, appending one result each."""
        for call in session.transcript[-1].tool_calls:
            result = await self._execute_tool(session=session, call=call)
            session.append(result)
            if sink is not None and self._config.echo_tool_results:
                shown = result.error if result.error is not None else result.content
                await write_to_sink(sink, f"🔧{result.name}:{shown}")

    async def _execute_tool(self, session: Session, call: ToolCallRequest) -> Message:
        self._observer.tool_call_started(
            session_id=session.session_id, tool_call_id=call.id, tool_name=call.name
        )
        timeout = self._config.tool_timeout_seconds
        started = time.monotonic()
        try:
            async with asyncio.timeout(timeout):
                output = await session.pool.call_tool(call.name, call.arguments)
        except TimeoutError:
            result = Message.tool_result(
                call, error=f"tool failed: timed out after {timeout:g}s"
            )
        except ToolInvocationError as exc:
            result = Message.tool_result(call, error=f"tool failed: {exc.reason}")
        else:
            if output.is_error:
                result = Message.tool_result(call, error=f"tool failed: {output.content}")
            else:
                result = Message.tool_result(call, content=output.content)

        self._observer.tool_call_completed(
            session_id=session.session_id,
            tool_call_id=call.id,
            tool_name=call.name,
            duration_ms=int((time.monotonic() - started) * 1000),
            is_error=result.is_error,
        )
        return result

    def _model_view(self, transcript: list[Message]) -> list[Message]:
        """The transcript as sent to the model, with the configured system prompt first."""
        prompt = self._config.system_prompt
        if not prompt or (transcript and transcript[0].role is Role.SYSTEM):
            return list(transcript)
        return [Message.system(prompt), *transcript]
