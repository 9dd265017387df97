"""Session and SessionLifecycleManager — scoped ownership of a tool pool per run."""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import anyio

from mcp_chat.config.domain.tool_group import ToolGroup
from mcp_chat.conversation.domain.message import Message
from mcp_chat.conversation.domain.transcript import validate_transcript
from mcp_chat.orchestration.domain.observer import OrchestrationObserver
from mcp_chat.orchestration.domain.state import OrchestrationState
from mcp_chat.tools.domain.pool import ToolExecutorPool, ToolPoolFactory


@dataclass
class Session:
    """One orchestration run: its transcript, its exclusively owned tool pool, and its state.

    The transcript is mutated only by the Orchestrator.
    """

    session_id: str
    transcript: list[Message]
    pool: ToolExecutorPool
    tool_groups: list[str] = field(default_factory=list)
    state: OrchestrationState = OrchestrationState.AWAITING_MODEL

    def append(self, message: Message) -> None:
        self.transcript.append(message)


class SessionLifecycleManager:
    """Opens Sessions and guarantees their pool is released exactly once.

    Release runs on every exit path of the `open` context (normal completion,
    exception, cancellation). Release failures are reported to the observer and
    never replace the error that ended the run.
    """

    def __init__(
        self, pool_factory: ToolPoolFactory, observer: OrchestrationObserver
    ) -> None:
        self._pool_factory = pool_factory
        self._observer = observer

    @asynccontextmanager
    async def open(
        self, transcript: list[Message], tool_groups: list[ToolGroup]
    ) -> AsyncIterator[Session]:
        """Validate the transcript, acquire a pool, and yield the new Session.

        Raises:
            EmptyTranscriptError, InvalidTranscriptError: before anything is acquired.
            ToolPoolAcquisitionError: if the pool cannot be acquired; nothing to release.
        """
        validate_transcript(transcript)
        pool = await self._pool_factory.acquire(tool_groups=tool_groups)

        session = Session(
            session_id=str(uuid.uuid4()),
            transcript=list(transcript),
            pool=pool,
            tool_groups=[group.name for group in tool_groups],
        )
        self._observer.session_opened(
            session_id=session.session_id,
            tool_groups=session.tool_groups,
            message_count=len(session.transcript),
        )
        try:
            yield session
        finally:
            await self._release(session)

    async def _release(self, session: Session) -> None:
        # Shielded so that a cancelled caller still closes its tool connections.
        with anyio.CancelScope(shield=True):
            try:
                await session.pool.close()
            except Exception as exc:
                self._observer.session_release_failed(
                    session_id=session.session_id,
                    reason=str(exc) or type(exc).__name__,
                )
                return
        self._observer.session_released(
            session_id=session.session_id, state=session.state.value
        )
