"""ToolDefinition and ToolOutput value objects."""

from typing import Any

from pydantic import BaseModel, Field


class ToolDefinition(BaseModel, frozen=True):
    """A tool a pool can execute, as declared to the model."""

    name: str = Field(min_length=1)
    description: str = ""
    input_schema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


class ToolOutput(BaseModel, frozen=True):
    """Rendered result of one tool execution.

    is_error is True when the tool itself reported a failure; content then holds
    the tool's error text.
    """

    content: str
    is_error: bool = False
