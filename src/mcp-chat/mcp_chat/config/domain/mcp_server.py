"""MCP server connection models — discriminated union on the `type` field."""

from typing import Annotated, Literal
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator

_REMOTE_SCHEMES = ("http", "https")


class StdioMcpServer(BaseModel, frozen=True):
    """Tool server launched as a subprocess speaking MCP over stdio."""

    type: Literal["stdio"]
    command: str = Field(min_length=1)
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    cwd: str | None = None


class _RemoteMcpServer(BaseModel, frozen=True):
    """Tool server reached over HTTP; headers are sent with every request."""

    url: str = Field(min_length=1)
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("url")
    @classmethod
    def _check_url(cls, url: str) -> str:
        parts = urlsplit(url)
        if parts.scheme not in _REMOTE_SCHEMES or not parts.netloc:
            raise ValueError(f"url must be an absolute http(s) URL, got '{url}'")
        return url


class SseMcpServer(_RemoteMcpServer, frozen=True):
    """Tool server reachable over Server-Sent Events."""

    type: Literal["sse"]


class HttpMcpServer(_RemoteMcpServer, frozen=True):
    """Tool server reachable over streamable HTTP."""

    type: Literal["http"]


type McpServer = Annotated[
    StdioMcpServer | SseMcpServer | HttpMcpServer,
    Field(discriminator="type"),
]
