"""ModelInvoker Protocol — structural interface for language-model providers."""

from collections.abc import AsyncIterator
from typing import Protocol

from mcp_chat.conversation.domain.fragment import StreamFragment
from mcp_chat.conversation.domain.message import Message
from mcp_chat.tools.domain.tool import ToolDefinition


class ModelInvoker(Protocol):
    """Structural interface satisfied by any model provider binding.

    One instance is selected per Session. tools is None when no tools are
    declared for the Session.
    """

    async def invoke(
        self, transcript: list[Message], tools: list[ToolDefinition] | None = None
    ) -> Message:
        """Return the complete assistant message for the transcript.

        Raises:
            ModelInvocationError: on any provider failure.
        """
        ...

    def stream(
        self, transcript: list[Message], tools: list[ToolDefinition] | None = None
    ) -> AsyncIterator[StreamFragment]:
        """Yield the assistant turn as fragments, in generation order.

        The iterator is finite and not restartable. Provider failures are raised
        as ModelInvocationError from the iterator.
        """
        ...
