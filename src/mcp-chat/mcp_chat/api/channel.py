"""ChannelSink — bounded channel between an orchestration task and an HTTP response body."""

import asyncio
from dataclasses import dataclass

from mcp_chat.core.errors import McpChatError
from mcp_chat.orchestration.application.errors import SinkWriteError


@dataclass(frozen=True)
class ChannelFailure:
    """Terminal item: the producer finished with an error."""

    error: McpChatError


class _End:
    pass


_END = _End()

type ChannelItem = str | ChannelFailure | _End


class ChannelSink:
    """OutputSink whose chunks are consumed by another task.

    The producer calls write()/end() or fail(); the consumer polls next_item().
    After the consumer calls close(), writes raise SinkWriteError.
    """

    def __init__(self, maxsize: int = 64) -> None:
        self._queue: asyncio.Queue[ChannelItem] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    async def write(self, chunk: str) -> None:
        if self._closed:
            raise SinkWriteError("client disconnected")
        await self._queue.put(chunk)

    async def end(self) -> None:
        if not self._closed:
            await self._queue.put(_END)

    async def fail(self, error: McpChatError) -> None:
        if not self._closed:
            await self._queue.put(ChannelFailure(error=error))

    def close(self) -> None:
        self._closed = True

    async def next_item(self) -> str | ChannelFailure | None:
        """Return the next chunk or failure, or None once the producer has ended."""
        item = await self._queue.get()
        if isinstance(item, _End):
            return None
        return item
