"""OutputSink Protocol — the caller-facing, append-only text channel."""

from typing import Protocol


class OutputSink(Protocol):
    """Ordered text channel the orchestration writes streamed output to.

    Implementations raise SinkWriteError when a chunk cannot be delivered.
    """

    async def write(self, chunk: str) -> None: ...

    async def end(self) -> None: ...
