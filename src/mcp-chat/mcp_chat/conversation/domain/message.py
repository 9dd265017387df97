"""Message, Role and ToolCallRequest value objects — one conversation turn."""

from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, Field, model_validator


class Role(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolCallRequest(BaseModel, frozen=True):
    """One tool invocation requested by an assistant message."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    arguments: dict[str, Any] = Field(default_factory=dict)


class Message(BaseModel, frozen=True):
    """Immutable conversation message.

    For role="assistant": tool_calls lists the requested invocations (may be []).
    For role="tool": tool_call_id names the request this result answers; either
    content holds the success payload or error holds the failure description.
    """

    role: Role
    content: str = ""
    tool_calls: list[ToolCallRequest] = Field(default_factory=list)
    tool_call_id: str | None = None
    name: str | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _check_role_fields(self) -> Self:
        if self.tool_calls and self.role is not Role.ASSISTANT:
            raise ValueError("only assistant messages may carry tool calls")

        ids = [call.id for call in self.tool_calls]
        if len(ids) != len(set(ids)):
            raise ValueError("tool call ids must be unique within a message")

        if self.role is Role.TOOL and not self.tool_call_id:
            raise ValueError("tool messages require a tool_call_id")

        if self.error is not None and self.role is not Role.TOOL:
            raise ValueError("only tool messages may carry an error")
        return self

    @property
    def requests_tools(self) -> bool:
        return bool(self.tool_calls)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(
        cls, content: str = "", tool_calls: list[ToolCallRequest] | None = None
    ) -> "Message":
        return cls(
            role=Role.ASSISTANT,
            content=content,
            tool_calls=tool_calls if tool_calls is not None else [],
        )

    @classmethod
    def tool_result(
        cls,
        call: ToolCallRequest,
        content: str = "",
        error: str | None = None,
    ) -> "Message":
        """Build the ToolResult answering call, carrying a payload or an error."""
        return cls(
            role=Role.TOOL,
            content=content,
            tool_call_id=call.id,
            name=call.name,
            error=error,
        )
