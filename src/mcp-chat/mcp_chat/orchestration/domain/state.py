"""OrchestrationState enum and the pure transition functions of the turn loop."""

from enum import StrEnum

from mcp_chat.conversation.domain.message import Message


class OrchestrationState(StrEnum):
    AWAITING_MODEL = "awaiting_model"
    AWAITING_TOOLS = "awaiting_tools"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (OrchestrationState.DONE, OrchestrationState.FAILED)


def after_model_response(message: Message) -> OrchestrationState:
    """Route a successful assistant message: tools requested -> AWAITING_TOOLS, else DONE."""
    if message.requests_tools:
        return OrchestrationState.AWAITING_TOOLS
    return OrchestrationState.DONE


def after_tool_results() -> OrchestrationState:
    """Every tool result is appended; the model reacts next."""
    return OrchestrationState.AWAITING_MODEL


def after_failure() -> OrchestrationState:
    return OrchestrationState.FAILED
