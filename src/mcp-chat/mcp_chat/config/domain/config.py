"""Top-level AppConfig aggregate — the root configuration object."""

from pydantic import BaseModel, Field

from mcp_chat.config.domain.errors import UnknownToolGroupError
from mcp_chat.config.domain.mcp_server import McpServer
from mcp_chat.config.domain.model import ModelConfig
from mcp_chat.config.domain.orchestration import OrchestrationConfig
from mcp_chat.config.domain.server import ServerConfig
from mcp_chat.config.domain.tool_group import ToolGroup

type ServerName = str


class AppConfig(BaseModel, frozen=True):
    """Root configuration aggregate, passed explicitly into every component."""

    name: str = Field(min_length=1)
    model: ModelConfig
    orchestration: OrchestrationConfig = Field(default_factory=OrchestrationConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    tools_enabled: bool = True
    mcp_servers: dict[ServerName, McpServer] = Field(default_factory=dict)
    # None selects every configured server.
    default_tool_groups: list[ServerName] | None = None

    def tool_groups(self, names: list[str] | None = None) -> list[ToolGroup]:
        """Resolve tool group names to ToolGroups, in the order given.

        names=None selects default_tool_groups (or every server when that is
        also None). Returns [] when tools are disabled.

        Raises:
            UnknownToolGroupError: if a name matches no configured MCP server.
        """
        if names is not None:
            unknown = [name for name in names if name not in self.mcp_servers]
            if unknown:
                raise UnknownToolGroupError(names=unknown)
        if not self.tools_enabled:
            return []
        if names is None:
            names = (
                self.default_tool_groups
                if self.default_tool_groups is not None
                else list(self.mcp_servers.keys())
            )
        return [ToolGroup(name=name, config=self.mcp_servers[name]) for name in names]
