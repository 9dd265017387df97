"""Parsing of tool-call argument text into structured arguments."""

import json
from typing import Any

from mcp_chat.conversation.domain.errors import ModelOutputError


def parse_tool_arguments(tool_name: str, raw: str | None) -> dict[str, Any]:
    """Parse the JSON argument text of a tool call.

    Empty or missing text means "no arguments".

    Raises:
        ModelOutputError: if the text is not valid JSON or not a JSON object.
    """
    if raw is None or not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ModelOutputError(
            f"arguments for tool '{tool_name}' are not valid JSON: {exc}"
        ) from exc
    if not isinstance(parsed, dict):
        raise ModelOutputError(
            f"arguments for tool '{tool_name}' must be a JSON object"
        )
    return parsed
