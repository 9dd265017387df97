"""StreamMerger — folds streamed fragments into one assistant Message."""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from mcp_chat.conversation.domain.errors import ModelOutputError
from mcp_chat.conversation.domain.fragment import StreamFragment, ToolCallDelta
from mcp_chat.conversation.domain.message import Message, ToolCallRequest
from mcp_chat.conversation.domain.tool_arguments import parse_tool_arguments
from mcp_chat.orchestration.application.errors import SinkWriteError
from mcp_chat.orchestration.domain.sink import OutputSink


@dataclass
class _PartialToolCall:
    id: str
    index: int | None
    name: str = ""
    arguments: list[str] = field(default_factory=list)


class _Accumulator:
    """Accumulates one assistant turn. Text and argument pieces are only ever appended."""

    def __init__(self) -> None:
        self._text: list[str] = []
        self._calls: list[_PartialToolCall] = []
        self._by_id: dict[str, _PartialToolCall] = {}
        self._by_index: dict[int, _PartialToolCall] = {}

    def add(self, fragment: StreamFragment) -> None:
        if fragment.delta_text:
            self._text.append(fragment.delta_text)
        for delta in fragment.delta_tool_calls:
            self._add_tool_call(delta)

    def _add_tool_call(self, delta: ToolCallDelta) -> None:
        call = self._target(delta)
        if delta.name and not call.name:
            call.name = delta.name
        if delta.arguments:
            call.arguments.append(delta.arguments)

    def _target(self, delta: ToolCallDelta) -> _PartialToolCall:
        """Find the call a delta extends, opening a new one for an unseen id."""
        if delta.id is not None:
            existing = self._by_id.get(delta.id)
            if existing is not None:
                return existing
            call = _PartialToolCall(id=delta.id, index=delta.index)
            self._calls.append(call)
            self._by_id[call.id] = call
            if delta.index is not None:
                self._by_index[delta.index] = call
            return call

        # Continuation deltas usually carry only the index.
        if delta.index is not None and delta.index in self._by_index:
            return self._by_index[delta.index]
        if self._calls:
            return self._calls[-1]
        raise ModelOutputError("tool call fragment arrived before any tool call id")

    def to_message(self) -> Message:
        tool_calls: list[ToolCallRequest] = []
        for call in self._calls:
            if not call.name:
                raise ModelOutputError(f"tool call '{call.id}' has no tool name")
            tool_calls.append(
                ToolCallRequest(
                    id=call.id,
                    name=call.name,
                    arguments=parse_tool_arguments(
                        tool_name=call.name, raw="".join(call.arguments)
                    ),
                )
            )
        return Message.assistant(content="".join(self._text), tool_calls=tool_calls)


class StreamMerger:
    """Merges a model's fragment stream into a Message while forwarding text to a sink.

    Each fragment's text is written to the sink as soon as it arrives, before the
    next fragment is read. Tool-call argument text is concatenated per call and
    parsed only once the stream has ended.
    """

    async def merge(
        self, fragments: AsyncIterator[StreamFragment], sink: OutputSink
    ) -> Message:
        """Consume fragments in arrival order and return the merged assistant message.

        If the fragment stream raises, the partial message is discarded and the
        error propagates; text already written to the sink stays written.

        Raises:
            SinkWriteError: if the sink rejects a chunk.
            ModelOutputError: if tool-call fragments cannot be assembled.
        """
        accumulator = _Accumulator()
        try:
            async for fragment in fragments:
                accumulator.add(fragment)
                if fragment.delta_text:
                    await write_to_sink(sink, fragment.delta_text)
        finally:
            # Stop the producer when merging ends early.
            aclose = getattr(fragments, "aclose", None)
            if aclose is not None:
                await aclose()
        return accumulator.to_message()


async def write_to_sink(sink: OutputSink, chunk: str) -> None:
    """Write one chunk, reporting any sink failure as SinkWriteError."""
    try:
        await sink.write(chunk)
    except SinkWriteError:
        raise
    except Exception as exc:
        raise SinkWriteError(str(exc) or type(exc).__name__) from exc
