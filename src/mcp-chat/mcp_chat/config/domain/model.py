"""Model provider configuration model."""

from pydantic import BaseModel, Field


class ModelConfig(BaseModel, frozen=True):
    provider: str = Field(min_length=1)
    model: str = Field(min_length=1)
    api_key: str | None = None
    api_base: str | None = None
    api_version: str | None = None
    temperature: float | None = None
    max_tokens: int | None = Field(default=None, ge=1)
    stream: bool = True
