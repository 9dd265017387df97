"""LiteLLMModelInvoker — model invoker implementation using LiteLLM."""

import json
from collections.abc import AsyncIterator
from typing import Any

import litellm
from pydantic import ValidationError

from mcp_chat.config.domain.model import ModelConfig
from mcp_chat.conversation.domain.errors import ModelOutputError
from mcp_chat.conversation.domain.fragment import StreamFragment, ToolCallDelta
from mcp_chat.conversation.domain.message import Message, Role, ToolCallRequest
from mcp_chat.conversation.domain.tool_arguments import parse_tool_arguments
from mcp_chat.model.domain.observer import ModelObserver
from mcp_chat.model.infrastructure.errors import ModelInvocationError
from mcp_chat.tools.domain.tool import ToolDefinition

type ChatMessage = dict[str, Any]


class LiteLLMModelInvoker:
    """Model invoker that delegates to any provider LiteLLM can route to.

    route is the LiteLLM provider prefix (e.g. "openai", "azure", "ollama_chat")
    chosen once by the provider registry; the configured model name is sent as
    "<route>/<model>".
    """

    def __init__(self, config: ModelConfig, route: str, observer: ModelObserver) -> None:
        litellm.suppress_debug_info = True
        self._config = config
        self._model = f"{route}/{config.model}"
        self._observer = observer

    @property
    def model(self) -> str:
        return self._model

    async def invoke(
        self, transcript: list[Message], tools: list[ToolDefinition] | None = None
    ) -> Message:
        """Run a single-shot completion and return the assistant message.

        Raises:
            ModelInvocationError: if the provider call fails.
            ModelOutputError: if a tool call carries unparseable arguments, a
                missing id or name, or an id already used in the same reply.
        """
        kwargs = self._completion_kwargs(transcript=transcript, tools=tools, stream=False)
        try:
            response = await litellm.acompletion(**kwargs)
        except Exception as exc:
            raise self._failure(exc) from exc

        message = response.choices[0].message
        try:
            tool_calls = [
                ToolCallRequest(
                    id=call.id,
                    name=call.function.name,
                    arguments=parse_tool_arguments(
                        tool_name=call.function.name, raw=call.function.arguments
                    ),
                )
                for call in (message.tool_calls or [])
            ]
            return Message.assistant(
                content=message.content or "", tool_calls=tool_calls
            )
        except ValidationError as exc:
            raise ModelOutputError(
                f"assistant message is malformed: {_first_reason(exc)}"
            ) from exc

    async def stream(
        self, transcript: list[Message], tools: list[ToolDefinition] | None = None
    ) -> AsyncIterator[StreamFragment]:
        """Yield the streamed completion as StreamFragments.

        Raises:
            ModelInvocationError: if the provider call fails, before or during the stream.
        """
        kwargs = self._completion_kwargs(transcript=transcript, tools=tools, stream=True)
        try:
            response = await litellm.acompletion(**kwargs)
        except Exception as exc:
            raise self._failure(exc) from exc

        try:
            async for chunk in response:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                fragment = StreamFragment(
                    delta_text=delta.content or "",
                    delta_tool_calls=[
                        _tool_call_delta(raw) for raw in (delta.tool_calls or [])
                    ],
                )
                if fragment.delta_text or fragment.delta_tool_calls:
                    yield fragment
        except Exception as exc:
            raise self._failure(exc) from exc

    def _completion_kwargs(
        self,
        transcript: list[Message],
        tools: list[ToolDefinition] | None,
        stream: bool,
    ) -> dict[str, Any]:
        tool_specs = [_to_tool_spec(tool) for tool in tools or []]
        self._observer.model_request_sent(
            model=self._model,
            message_count=len(transcript),
            tool_count=len(tool_specs),
            streaming=stream,
        )

        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [_to_chat_message(message) for message in transcript],
            "stream": stream,
        }
        if tool_specs:
            kwargs["tools"] = tool_specs
        optional = {
            "temperature": self._config.temperature,
            "max_tokens": self._config.max_tokens,
            "api_key": self._config.api_key,
            "api_base": self._config.api_base,
            "api_version": self._config.api_version,
        }
        kwargs.update({key: value for key, value in optional.items() if value is not None})
        return kwargs

    def _failure(self, exc: Exception) -> ModelInvocationError:
        """Map a provider exception to ModelInvocationError, keeping its HTTP status."""
        status_code = getattr(exc, "status_code", None)
        if not isinstance(status_code, int) or not 400 <= status_code <= 599:
            status_code = 500
        reason = str(exc) or type(exc).__name__
        self._observer.model_request_failed(
            model=self._model, reason=reason, status_code=status_code
        )
        return ModelInvocationError(reason=reason, status_code=status_code)


def _to_chat_message(message: Message) -> ChatMessage:
    """Convert a Message to the OpenAI-compatible dict LiteLLM accepts."""
    if message.role is Role.TOOL:
        return {
            "role": "tool",
            "tool_call_id": message.tool_call_id,
            "content": message.error if message.error is not None else message.content,
        }

    if message.role is Role.ASSISTANT and message.tool_calls:
        return {
            "role": "assistant",
            # Some providers reject "" alongside tool calls.
            "content": message.content or None,
            "tool_calls": [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {
                        "name": call.name,
                        "arguments": json.dumps(call.arguments),
                    },
                }
                for call in message.tool_calls
            ],
        }

    return {"role": message.role.value, "content": message.content}


def _to_tool_spec(tool: ToolDefinition) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.input_schema,
        },
    }


def _first_reason(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error["loc"])
    return f"{location}: {error['msg']}" if location else error["msg"]


def _tool_call_delta(raw: Any) -> ToolCallDelta:
    function = getattr(raw, "function", None)
    return ToolCallDelta(
        id=getattr(raw, "id", None) or None,
        index=getattr(raw, "index", None),
        name=(getattr(function, "name", None) or None) if function else None,
        arguments=(getattr(function, "arguments", None) or "") if function else "",
    )
