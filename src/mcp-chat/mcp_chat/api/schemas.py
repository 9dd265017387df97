"""Request schemas for the chat HTTP surface."""

from pydantic import BaseModel, Field

from mcp_chat.conversation.domain.message import Message


class ModelOverrides(BaseModel, frozen=True):
    """Per-request adjustments applied on top of the configured model."""

    model: str | None = Field(default=None, min_length=1)
    temperature: float | None = None


class ChatRequest(BaseModel, frozen=True):
    messages: list[Message]
    model: ModelOverrides | None = None
    # None selects the configured default groups; [] disables tools for this request.
    tool_groups: list[str] | None = None
    stream: bool | None = None
