"""ChatDispatcher — turns a chat request into a Session run and an HTTP response."""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import suppress

from fastapi.responses import JSONResponse, Response, StreamingResponse

from mcp_chat.api.channel import ChannelFailure, ChannelSink
from mcp_chat.api.errors import ChatAbortedError
from mcp_chat.api.observer import ApiObserver
from mcp_chat.api.schemas import ChatRequest, ModelOverrides
from mcp_chat.config.domain.config import AppConfig
from mcp_chat.config.domain.model import ModelConfig
from mcp_chat.config.domain.tool_group import ToolGroup
from mcp_chat.conversation.domain.message import Message
from mcp_chat.core.errors import McpChatError
from mcp_chat.model.domain.invoker import ModelInvoker
from mcp_chat.orchestration.application.orchestrator import Orchestrator
from mcp_chat.orchestration.application.session import SessionLifecycleManager
from mcp_chat.orchestration.domain.observer import OrchestrationObserver

type InvokerFactory = Callable[[ModelConfig], ModelInvoker]
type DisconnectCheck = Callable[[], Awaitable[bool]]

_STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"
# Status logged for a client that left before the response started.
_CLIENT_CLOSED_REQUEST = 499


class ChatDispatcher:
    """Handles POST /api/chat.

    Non-streaming requests run the Session inline and answer with JSON. Streaming
    requests run the Session in a separate task that writes to a ChannelSink; the
    response status is decided by the first item the task produces, so failures
    before any output still map to an HTTP error status. While that first item is
    pending, is_disconnected is polled so that a client leaving during a long first
    model call cancels the run without waiting for its output.
    """

    def __init__(
        self,
        config: AppConfig,
        invoker_factory: InvokerFactory,
        session_manager: SessionLifecycleManager,
        orchestration_observer: OrchestrationObserver,
        observer: ApiObserver,
        disconnect_poll_seconds: float = 0.5,
    ) -> None:
        self._config = config
        self._invoker_factory = invoker_factory
        self._sessions = session_manager
        self._orchestration_observer = orchestration_observer
        self._observer = observer
        self._disconnect_poll_seconds = disconnect_poll_seconds

    async def handle(
        self, request: ChatRequest, is_disconnected: DisconnectCheck | None = None
    ) -> Response:
        try:
            tool_groups = self._config.tool_groups(request.tool_groups)
            model_config = self._model_config(request.model)
            invoker = self._invoker_factory(model_config)
        except McpChatError as exc:
            return self._error_response(exc)

        streaming = request.stream if request.stream is not None else model_config.stream
        self._observer.chat_request_received(
            message_count=len(request.messages),
            streaming=streaming,
            tool_groups=[group.name for group in tool_groups],
        )
        orchestrator = Orchestrator(
            model_invoker=invoker,
            config=self._config.orchestration,
            observer=self._orchestration_observer,
            stream=streaming,
        )
        if streaming:
            return await self._stream(
                orchestrator, list(request.messages), tool_groups, is_disconnected
            )
        return await self._reply(orchestrator, list(request.messages), tool_groups)

    async def _reply(
        self,
        orchestrator: Orchestrator,
        transcript: list[Message],
        tool_groups: list[ToolGroup],
    ) -> Response:
        try:
            async with self._sessions.open(transcript, tool_groups) as session:
                result = await orchestrator.run(session)
        except McpChatError as exc:
            return self._error_response(exc)

        if result.error is not None:
            return self._error_response(result.error)
        return JSONResponse(
            {
                "reply": result.reply,
                "messages": [
                    message.model_dump(mode="json", exclude_none=True)
                    for message in result.new_messages
                ],
            }
        )

    async def _stream(
        self,
        orchestrator: Orchestrator,
        transcript: list[Message],
        tool_groups: list[ToolGroup],
        is_disconnected: DisconnectCheck | None,
    ) -> Response:
        channel = ChannelSink()
        task = asyncio.create_task(
            self._produce(orchestrator, transcript, tool_groups, channel)
        )
        first_item = asyncio.create_task(channel.next_item())
        poll_seconds = (
            self._disconnect_poll_seconds if is_disconnected is not None else None
        )
        try:
            while not first_item.done():
                await asyncio.wait({first_item}, timeout=poll_seconds)
                if first_item.done() or is_disconnected is None:
                    continue
                if await is_disconnected():
                    first_item.cancel()
                    channel.close()
                    task.cancel()
                    with suppress(asyncio.CancelledError):
                        await task
                    self._observer.chat_stream_disconnected()
                    return Response(status_code=_CLIENT_CLOSED_REQUEST)
        except BaseException:
            first_item.cancel()
            task.cancel()
            raise

        first = first_item.result()
        if isinstance(first, ChannelFailure):
            await task
            return self._error_response(first.error)
        return StreamingResponse(
            self._body(first, channel, task), media_type=_STREAM_MEDIA_TYPE
        )

    async def _produce(
        self,
        orchestrator: Orchestrator,
        transcript: list[Message],
        tool_groups: list[ToolGroup],
        channel: ChannelSink,
    ) -> None:
        """Run one Session in this task, so that its pool is acquired and released here."""
        try:
            async with self._sessions.open(transcript, tool_groups) as session:
                result = await orchestrator.run(session, sink=channel)
        except McpChatError as exc:
            await channel.fail(exc)
            return
        except Exception as exc:
            await channel.fail(ChatAbortedError(reason=str(exc) or type(exc).__name__))
            return

        if result.error is not None:
            await channel.fail(result.error)
        else:
            await channel.end()

    async def _body(
        self,
        first: str | None,
        channel: ChannelSink,
        task: asyncio.Task[None],
    ) -> AsyncIterator[str]:
        finished = False
        try:
            item: str | ChannelFailure | None = first
            while item is not None:
                if isinstance(item, ChannelFailure):
                    self._observer.chat_request_failed(
                        status_code=item.error.status_code, reason=str(item.error)
                    )
                    # Headers are already sent; report in-band.
                    yield f"Error: {item.error}"
                    break
                yield item
                item = await channel.next_item()
            finished = True
        finally:
            channel.close()
            if not finished:
                self._observer.chat_stream_disconnected()
            if not task.done():
                task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    def _model_config(self, overrides: ModelOverrides | None) -> ModelConfig:
        if overrides is None:
            return self._config.model
        return self._config.model.model_copy(
            update=overrides.model_dump(exclude_none=True)
        )

    def _error_response(self, error: McpChatError) -> JSONResponse:
        self._observer.chat_request_failed(
            status_code=error.status_code, reason=str(error)
        )
        return JSONResponse({"error": str(error)}, status_code=error.status_code)
