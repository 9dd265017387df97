"""Transcript validation — input checks run before any Session is created."""

from mcp_chat.conversation.domain.errors import (
    EmptyTranscriptError,
    InvalidTranscriptError,
)
from mcp_chat.conversation.domain.message import Message, Role


def validate_transcript(messages: list[Message]) -> None:
    """Reject transcripts the orchestration loop cannot start from.

    Raises:
        EmptyTranscriptError: if messages is empty.
        InvalidTranscriptError: if a tool result answers a tool call id that no
            earlier assistant message requested.
    """
    if not messages:
        raise EmptyTranscriptError()

    requested: set[str] = set()
    for position, message in enumerate(messages):
        if message.role is Role.ASSISTANT:
            requested.update(call.id for call in message.tool_calls)
        elif message.role is Role.TOOL and message.tool_call_id not in requested:
            raise InvalidTranscriptError(
                f"message {position} answers unknown tool call"
                f" '{message.tool_call_id}'"
            )
