"""Tests for the Orchestrator turn loop."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mcp_chat.config.domain.model import ModelConfig
from mcp_chat.config.domain.orchestration import OrchestrationConfig
from mcp_chat.conversation.domain.errors import ModelOutputError
from mcp_chat.conversation.domain.fragment import StreamFragment, ToolCallDelta
from mcp_chat.conversation.domain.message import Message, Role, ToolCallRequest
from mcp_chat.model.domain.invoker import ModelInvoker
from mcp_chat.model.infrastructure.errors import ModelInvocationError, ModelTimeoutError
from mcp_chat.model.infrastructure.litellm import LiteLLMModelInvoker
from mcp_chat.orchestration.application.errors import (
    MaxTurnsExceededError,
    SinkWriteError,
)
from mcp_chat.orchestration.application.orchestrator import Orchestrator
from mcp_chat.orchestration.application.session import Session
from mcp_chat.orchestration.domain.state import OrchestrationState
from mcp_chat.tools.domain.tool import ToolDefinition, ToolOutput
from mcp_chat.tools.infrastructure.errors import ToolInvocationError, UnknownToolError
from tests.model.fake_invoker import FakeModelInvoker
from tests.model.fake_observer import FakeModelObserver
from tests.orchestration.fake_observer import FakeOrchestrationObserver
from tests.orchestration.fake_sink import FakeSink
from tests.tools.fake_pool import FakeToolPool


def _make_session(
    transcript: list[Message] | None = None, pool: FakeToolPool | None = None
) -> Session:
    return Session(
        session_id="session-1",
        transcript=list(transcript) if transcript is not None else [Message.user("hi")],
        pool=pool if pool is not None else FakeToolPool(),
    )


def _make_orchestrator(
    invoker: ModelInvoker,
    observer: FakeOrchestrationObserver | None = None,
    stream: bool = False,
    **config: object,
) -> Orchestrator:
    return Orchestrator(
        model_invoker=invoker,
        config=OrchestrationConfig.model_validate(config),
        observer=observer if observer is not None else FakeOrchestrationObserver(),
        stream=stream,
    )


def _tool(name: str) -> ToolDefinition:
    return ToolDefinition(name=name, description=f"{name} tool")


def _request(*calls: tuple[str, str]) -> Message:
    return Message.assistant(
        tool_calls=[ToolCallRequest(id=call_id, name=name) for call_id, name in calls]
    )


class TestPlainReply:
    async def test_single_user_message_finishes_after_one_call(self) -> None:
        invoker = FakeModelInvoker(turns=[Message.assistant("hello")])
        session = _make_session()

        result = await _make_orchestrator(invoker).run(session)

        assert result.state is OrchestrationState.DONE
        assert list(result.transcript) == [Message.user("hi"), Message.assistant("hello")]
        assert len(invoker.calls) == 1
        assert result.reply == "hello"
        assert result.error is None

    async def test_no_tools_declared_passes_none(self) -> None:
        invoker = FakeModelInvoker(turns=[Message.assistant("hello")])

        await _make_orchestrator(invoker).run(_make_session())

        assert invoker.calls[0].tools is None

    async def test_declared_tools_are_passed_to_model(self) -> None:
        invoker = FakeModelInvoker(turns=[Message.assistant("hello")])
        pool = FakeToolPool(tools=[_tool("list_files")])

        await _make_orchestrator(invoker).run(_make_session(pool=pool))

        assert invoker.calls[0].tools == [_tool("list_files")]

    async def test_new_messages_exclude_caller_transcript(self) -> None:
        invoker = FakeModelInvoker(turns=[Message.assistant("hello")])

        result = await _make_orchestrator(invoker).run(_make_session())

        assert result.new_messages == (Message.assistant("hello"),)


class TestToolTurns:
    async def test_tool_call_then_final_answer(self) -> None:
        pool = FakeToolPool(
            tools=[_tool("list_files")],
            outputs={"list_files": ToolOutput(content="a.txt, b.txt")},
        )
        invoker = FakeModelInvoker(
            turns=[_request(("1", "list_files")), Message.assistant("Two files.")]
        )
        session = _make_session(transcript=[Message.user("list files")], pool=pool)

        result = await _make_orchestrator(invoker).run(session)

        assert result.state is OrchestrationState.DONE
        assert [call.name for call in pool.calls] == ["list_files"]
        tool_result = result.transcript[2]
        assert tool_result.role is Role.TOOL
        assert tool_result.tool_call_id == "1"
        assert tool_result.content == "a.txt, b.txt"
        assert result.reply == "Two files."
        # Second model call sees the tool result.
        assert invoker.calls[1].transcript[-1] == tool_result

    async def test_n_results_appended_in_request_order(self) -> None:
        pool = FakeToolPool(
            tools=[_tool("slow"), _tool("fast")],
            delays={"slow": 0.02},
        )
        invoker = FakeModelInvoker(
            turns=[
                _request(("c1", "slow"), ("c2", "fast"), ("c3", "slow")),
                Message.assistant("done"),
            ]
        )

        result = await _make_orchestrator(invoker).run(_make_session(pool=pool))

        results = [m for m in result.transcript if m.role is Role.TOOL]
        assert [m.tool_call_id for m in results] == ["c1", "c2", "c3"]
        assert len(invoker.calls[1].transcript) == 1 + 1 + 3

    async def test_arguments_are_forwarded_to_pool(self) -> None:
        pool = FakeToolPool(tools=[_tool("search")])
        request = Message.assistant(
            tool_calls=[ToolCallRequest(id="1", name="search", arguments={"q": "x"})]
        )
        invoker = FakeModelInvoker(turns=[request, Message.assistant("ok")])

        await _make_orchestrator(invoker).run(_make_session(pool=pool))

        assert pool.calls[0].arguments == {"q": "x"}


class TestToolFailures:
    async def test_failing_tool_yields_error_result_and_loop_continues(self) -> None:
        pool = FakeToolPool(
            tools=[_tool("bad_tool")],
            outputs={"bad_tool": ToolInvocationError(tool_name="bad_tool", reason="boom")},
        )
        invoker = FakeModelInvoker(
            turns=[_request(("2", "bad_tool")), Message.assistant("sorry")]
        )

        result = await _make_orchestrator(invoker).run(_make_session(pool=pool))

        assert result.state is OrchestrationState.DONE
        tool_result = result.transcript[2]
        assert tool_result.tool_call_id == "2"
        assert tool_result.error == "tool failed: boom"
        assert len(invoker.calls) == 2

    async def test_unknown_tool_yields_error_result(self) -> None:
        pool = FakeToolPool(outputs={"ghost": UnknownToolError(tool_name="ghost")})
        invoker = FakeModelInvoker(
            turns=[_request(("1", "ghost")), Message.assistant("ok")]
        )

        result = await _make_orchestrator(invoker).run(_make_session(pool=pool))

        assert result.transcript[2].error == "tool failed: unknown tool 'ghost'"

    async def test_tool_reported_error_yields_error_result(self) -> None:
        pool = FakeToolPool(
            outputs={"search": ToolOutput(content="quota exceeded", is_error=True)}
        )
        invoker = FakeModelInvoker(
            turns=[_request(("1", "search")), Message.assistant("ok")]
        )

        result = await _make_orchestrator(invoker).run(_make_session(pool=pool))

        assert result.transcript[2].error == "tool failed: quota exceeded"

    async def test_tool_timeout_yields_error_result(self) -> None:
        pool = FakeToolPool(delays={"slow": 5})
        invoker = FakeModelInvoker(
            turns=[_request(("1", "slow")), Message.assistant("ok")]
        )

        result = await _make_orchestrator(invoker, tool_timeout_seconds=0.01).run(
            _make_session(pool=pool)
        )

        assert result.state is OrchestrationState.DONE
        assert result.transcript[2].error == "tool failed: timed out after 0.01s"

    async def test_tool_calls_are_reported_to_observer(self) -> None:
        observer = FakeOrchestrationObserver()
        pool = FakeToolPool(
            outputs={"bad": ToolInvocationError(tool_name="bad", reason="boom")}
        )
        invoker = FakeModelInvoker(
            turns=[_request(("1", "good"), ("2", "bad")), Message.assistant("ok")]
        )

        await _make_orchestrator(invoker, observer=observer).run(
            _make_session(pool=pool)
        )

        assert observer.tool_calls_started == ["1", "2"]
        assert [e.is_error for e in observer.tool_calls_completed] == [False, True]


class TestModelFailures:
    async def test_model_error_fails_run(self) -> None:
        observer = FakeOrchestrationObserver()
        invoker = FakeModelInvoker(
            turns=[ModelInvocationError(reason="not found", status_code=404)]
        )
        session = _make_session()

        result = await _make_orchestrator(invoker, observer=observer).run(session)

        assert result.state is OrchestrationState.FAILED
        assert isinstance(result.error, ModelInvocationError)
        assert result.error.status_code == 404
        assert list(result.transcript) == [Message.user("hi")]
        assert observer.turns_failed[0].turn == 1

    async def test_model_error_after_tool_turn_keeps_tool_results(self) -> None:
        invoker = FakeModelInvoker(
            turns=[_request(("1", "search")), ModelInvocationError(reason="down")]
        )

        result = await _make_orchestrator(invoker).run(_make_session())

        assert result.state is OrchestrationState.FAILED
        assert result.transcript[-1].role is Role.TOOL

    async def test_model_timeout_fails_run_with_504(self) -> None:
        invoker = FakeModelInvoker(turns=[Message.assistant("late")], delay_seconds=5)

        result = await _make_orchestrator(invoker, model_timeout_seconds=0.01).run(
            _make_session()
        )

        assert result.state is OrchestrationState.FAILED
        assert isinstance(result.error, ModelTimeoutError)
        assert result.error.status_code == 504

    async def test_streamed_timeout_fails_run(self) -> None:
        invoker = FakeModelInvoker(turns=[Message.assistant("late")], delay_seconds=5)

        result = await _make_orchestrator(
            invoker, stream=True, model_timeout_seconds=0.01
        ).run(_make_session(), sink=FakeSink())

        assert isinstance(result.error, ModelTimeoutError)

    async def test_max_turns_stops_endless_tool_requests(self) -> None:
        invoker = FakeModelInvoker(
            turns=[_request((f"c{i}", "loop")) for i in range(5)]
        )

        result = await _make_orchestrator(invoker, max_turns=3).run(_make_session())

        assert result.state is OrchestrationState.FAILED
        assert isinstance(result.error, MaxTurnsExceededError)
        assert result.model_calls == 3
        assert len(invoker.calls) == 3

    async def test_duplicate_tool_call_ids_from_provider_fail_run_with_502(
        self,
    ) -> None:
        calls = []
        for name in ("list_files", "search"):
            call = MagicMock()
            call.id = "1"
            call.function.name = name
            call.function.arguments = "{}"
            calls.append(call)
        response = MagicMock()
        response.choices = [MagicMock()]
        response.choices[0].message.content = ""
        response.choices[0].message.tool_calls = calls
        observer = FakeOrchestrationObserver()
        invoker = LiteLLMModelInvoker(
            config=ModelConfig(provider="openai", model="gpt-4o"),
            route="openai",
            observer=FakeModelObserver(),
        )

        with patch(
            "mcp_chat.model.infrastructure.litellm.litellm.acompletion",
            new=AsyncMock(return_value=response),
        ):
            result = await _make_orchestrator(invoker, observer=observer).run(
                _make_session()
            )

        assert result.state is OrchestrationState.FAILED
        assert isinstance(result.error, ModelOutputError)
        assert result.error.status_code == 502
        assert list(result.transcript) == [Message.user("hi")]
        assert len(observer.turns_failed) == 1
        assert len(observer.finished) == 1

    async def test_unexpected_exception_propagates(self) -> None:
        invoker = FakeModelInvoker(turns=[RuntimeError("bug")])

        with pytest.raises(RuntimeError, match="bug"):
            await _make_orchestrator(invoker).run(_make_session())


class TestStreaming:
    async def test_streamed_reply_reaches_sink(self) -> None:
        invoker = FakeModelInvoker(
            turns=[[StreamFragment(delta_text="He"), StreamFragment(delta_text="llo")]]
        )
        sink = FakeSink()

        result = await _make_orchestrator(invoker, stream=True).run(
            _make_session(), sink=sink
        )

        assert result.reply == "Hello"
        assert sink.chunks == ["He", "llo"]
        assert sink.end_count == 0
        assert invoker.calls[0].streaming is True

    async def test_non_streaming_orchestrator_writes_nothing(self) -> None:
        invoker = FakeModelInvoker(turns=[Message.assistant("hello")])
        sink = FakeSink()

        await _make_orchestrator(invoker, stream=False).run(_make_session(), sink=sink)

        assert sink.chunks == []
        assert invoker.calls[0].streaming is False

    async def test_tool_results_are_echoed_to_sink(self) -> None:
        pool = FakeToolPool(
            outputs={
                "list_files": ToolOutput(content="a.txt"),
                "bad": ToolInvocationError(tool_name="bad", reason="boom"),
            }
        )
        invoker = FakeModelInvoker(
            turns=[
                _request(("1", "list_files"), ("2", "bad")),
                Message.assistant("done"),
            ]
        )
        sink = FakeSink()

        await _make_orchestrator(invoker, stream=True).run(
            _make_session(pool=pool), sink=sink
        )

        assert sink.chunks == [
            "🔧list_files:a.txt",
            "🔧bad:tool failed: boom",
            "done",
        ]

    async def test_echo_can_be_disabled(self) -> None:
        invoker = FakeModelInvoker(
            turns=[_request(("1", "list_files")), Message.assistant("done")]
        )
        sink = FakeSink()

        await _make_orchestrator(invoker, stream=True, echo_tool_results=False).run(
            _make_session(), sink=sink
        )

        assert sink.chunks == ["done"]

    async def test_mid_stream_error_discards_partial_message(self) -> None:
        invoker = FakeModelInvoker(
            turns=[
                [StreamFragment(delta_text="par"), ModelInvocationError(reason="reset")]
            ]
        )
        sink = FakeSink()

        result = await _make_orchestrator(invoker, stream=True).run(
            _make_session(), sink=sink
        )

        assert result.state is OrchestrationState.FAILED
        assert list(result.transcript) == [Message.user("hi")]
        assert sink.chunks == ["par"]

    async def test_sink_failure_fails_run(self) -> None:
        invoker = FakeModelInvoker(turns=[Message.assistant("hello")])

        result = await _make_orchestrator(invoker, stream=True).run(
            _make_session(), sink=FakeSink(fail_on_write=0)
        )

        assert result.state is OrchestrationState.FAILED
        assert isinstance(result.error, SinkWriteError)

    async def test_malformed_streamed_arguments_fail_run(self) -> None:
        invoker = FakeModelInvoker(
            turns=[
                [
                    StreamFragment(
                        delta_tool_calls=[
                            ToolCallDelta(id="1", name="search", arguments="{oops")
                        ]
                    )
                ]
            ]
        )

        result = await _make_orchestrator(invoker, stream=True).run(
            _make_session(), sink=FakeSink()
        )

        assert isinstance(result.error, ModelOutputError)
        assert result.error.status_code == 502


class TestSystemPrompt:
    async def test_system_prompt_is_prepended_for_model_only(self) -> None:
        invoker = FakeModelInvoker(turns=[Message.assistant("hello")])

        result = await _make_orchestrator(invoker, system_prompt="Be brief.").run(
            _make_session()
        )

        assert invoker.calls[0].transcript[0] == Message.system("Be brief.")
        assert result.transcript[0] == Message.user("hi")

    async def test_existing_system_message_is_kept(self) -> None:
        invoker = FakeModelInvoker(turns=[Message.assistant("hello")])
        transcript = [Message.system("Caller prompt."), Message.user("hi")]

        await _make_orchestrator(invoker, system_prompt="Be brief.").run(
            _make_session(transcript=transcript)
        )

        assert invoker.calls[0].transcript == transcript


class TestCancellation:
    async def test_cancellation_stops_loop(self) -> None:
        pool = FakeToolPool(delays={"slow": 5})
        invoker = FakeModelInvoker(
            turns=[_request(("1", "slow")), Message.assistant("never")]
        )
        orchestrator = _make_orchestrator(invoker)
        task = asyncio.create_task(orchestrator.run(_make_session(pool=pool)))
        await asyncio.sleep(0.01)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert len(invoker.calls) == 1
