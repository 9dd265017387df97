"""Tests for the mcp-chat CLI."""

from collections.abc import AsyncIterator, Iterator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import structlog
from typer.testing import CliRunner

from mcp_chat.cli.main import app

ACOMPLETION = "mcp_chat.model.infrastructure.litellm.litellm.acompletion"

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()


def _write_config(tmp_path: Path, provider: str = "ollama", extra: str = "") -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        "name: cli-test\n"
        "model:\n"
        f"  provider: {provider}\n"
        "  model: llama3.1\n"
        "tools_enabled: false\n"
        "mcp_servers:\n"
        "  files:\n"
        "    type: stdio\n"
        "    command: files-mcp\n" + extra
    )
    return path


def _make_response(content: str) -> MagicMock:
    message = MagicMock()
    message.content = content
    message.tool_calls = None
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


def _make_chunk(content: str) -> MagicMock:
    delta = MagicMock()
    delta.content = content
    delta.tool_calls = None
    choice = MagicMock()
    choice.delta = delta
    chunk = MagicMock()
    chunk.choices = [choice]
    return chunk


async def _chunks(*contents: str) -> AsyncIterator[MagicMock]:
    for content in contents:
        yield _make_chunk(content)


class TestGlobalOptions:
    def test_invalid_log_format_exits_1(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["--log-format", "xml", "tools", "--config", str(_write_config(tmp_path))]
        )

        assert result.exit_code == 1
        assert "Invalid log format" in result.output

    def test_invalid_log_level_exits_1(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["--log-level", "loud", "tools", "--config", str(_write_config(tmp_path))]
        )

        assert result.exit_code == 1
        assert "Invalid log level" in result.output


class TestChatCommand:
    def test_prints_reply_without_streaming(self, tmp_path: Path) -> None:
        config = _write_config(tmp_path)

        with patch(ACOMPLETION, new=AsyncMock(return_value=_make_response("hello"))):
            result = runner.invoke(
                app,
                ["--log-level", "error", "chat", "hi", "--config", str(config), "--no-stream"],
            )

        assert result.exit_code == 0, result.output
        assert "hello" in result.output

    def test_streams_reply(self, tmp_path: Path) -> None:
        config = _write_config(tmp_path)

        with patch(ACOMPLETION, new=AsyncMock(return_value=_chunks("He", "llo"))):
            result = runner.invoke(
                app, ["--log-level", "error", "chat", "hi", "--config", str(config)]
            )

        assert result.exit_code == 0, result.output
        assert "Hello\n" in result.output

    def test_model_failure_exits_1(self, tmp_path: Path) -> None:
        config = _write_config(tmp_path)

        with patch(ACOMPLETION, new=AsyncMock(side_effect=ConnectionError("refused"))):
            result = runner.invoke(
                app,
                ["--log-level", "error", "chat", "hi", "--config", str(config), "--no-stream"],
            )

        assert result.exit_code == 1
        assert "Failed to invoke model: refused" in result.output

    def test_missing_config_exits_1(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["chat", "hi", "--config", str(tmp_path / "absent.yaml")]
        )

        assert result.exit_code == 1
        assert "Failed to load config" in result.output

    def test_unsupported_provider_exits_1(self, tmp_path: Path) -> None:
        config = _write_config(tmp_path, provider="acme")

        result = runner.invoke(
            app, ["--log-level", "error", "chat", "hi", "--config", str(config)]
        )

        assert result.exit_code == 1
        assert "unsupported provider 'acme'" in result.output

    def test_unknown_tool_group_exits_1(self, tmp_path: Path) -> None:
        config = _write_config(tmp_path)

        result = runner.invoke(
            app,
            ["--log-level", "error", "chat", "hi", "--config", str(config), "-t", "jira"],
        )

        assert result.exit_code == 1
        assert "unknown tool groups: jira" in result.output


class TestToolsCommand:
    def test_no_tools_when_disabled(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["--log-level", "error", "tools", "--config", str(_write_config(tmp_path))]
        )

        assert result.exit_code == 0, result.output
        assert "No tools available." in result.output
