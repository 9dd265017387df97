"""HTTP server configuration models."""

from pydantic import BaseModel, Field


class RateLimitConfig(BaseModel, frozen=True):
    """Per-client request budget applied to every endpoint.

    A client may make at most `requests` requests in each fixed window of
    `window_seconds`.
    """

    enabled: bool = True
    requests: int = Field(default=100, ge=1)
    window_seconds: int = Field(default=300, ge=1)


class ServerConfig(BaseModel, frozen=True):
    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
