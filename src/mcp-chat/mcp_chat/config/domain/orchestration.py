"""Orchestration loop configuration model."""

from pydantic import BaseModel, Field


class OrchestrationConfig(BaseModel, frozen=True):
    # Upper bound on model invocations per Session.
    max_turns: int = Field(default=10, ge=1)
    model_timeout_seconds: float = Field(default=120.0, gt=0)
    tool_timeout_seconds: float = Field(default=60.0, gt=0)
    system_prompt: str | None = None
    echo_tool_results: bool = True
