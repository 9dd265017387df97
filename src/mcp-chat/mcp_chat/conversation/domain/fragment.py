"""StreamFragment and ToolCallDelta — incremental pieces of a streamed assistant turn."""

from pydantic import BaseModel, Field


class ToolCallDelta(BaseModel, frozen=True):
    """A partial tool call as streamed by a provider.

    Providers typically send id and name on the first delta of a call and only
    argument text (keyed by index) afterwards.
    """

    id: str | None = None
    index: int | None = None
    name: str | None = None
    arguments: str = ""


class StreamFragment(BaseModel, frozen=True):
    delta_text: str = ""
    delta_tool_calls: list[ToolCallDelta] = Field(default_factory=list)
