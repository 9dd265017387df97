"""OrchestrationResult — the outcome of one orchestration run."""

from dataclasses import dataclass

from mcp_chat.conversation.domain.message import Message, Role
from mcp_chat.core.errors import McpChatError
from mcp_chat.orchestration.domain.state import OrchestrationState


@dataclass(frozen=True)
class OrchestrationResult:
    """Final state, transcript snapshot, and failure (if any) of a Session run.

    initial_length is the transcript length before the run, so that callers can
    tell the messages this run appended from the ones the caller sent.
    """

    session_id: str
    state: OrchestrationState
    transcript: tuple[Message, ...]
    initial_length: int
    model_calls: int
    error: McpChatError | None = None

    @property
    def new_messages(self) -> tuple[Message, ...]:
        return self.transcript[self.initial_length :]

    @property
    def reply(self) -> str:
        """Content of the last assistant message appended by this run, or ""."""
        for message in reversed(self.new_messages):
            if message.role is Role.ASSISTANT:
                return message.content
        return ""
