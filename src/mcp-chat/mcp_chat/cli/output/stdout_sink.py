"""StdoutSink — writes streamed reply text to the terminal as it arrives."""

import typer

from mcp_chat.orchestration.application.errors import SinkWriteError


class StdoutSink:
    """OutputSink over stdout. Satisfies the OutputSink protocol structurally."""

    def __init__(self) -> None:
        self.wrote_output = False

    async def write(self, chunk: str) -> None:
        try:
            typer.echo(chunk, nl=False)
        except OSError as exc:
            raise SinkWriteError(str(exc)) from exc
        self.wrote_output = True

    async def end(self) -> None:
        if self.wrote_output:
            typer.echo("")
