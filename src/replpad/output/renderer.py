"""
Output renderer for the console transcript.

Everything the console shows goes through a single always-visible transcript.
"""

import io
import sys
from typing import Protocol

from rich.console import Console
from rich.control import Control
from rich.markdown import Markdown
from rich.panel import Panel


class OutputSink(Protocol):
    """Anything that can append text to the transcript."""

    def write(self, text: str) -> None: ...


class TranscriptRenderer:
    """
    Renders console output with Rich.

    `write` is the raw sink used by the line source, the engine and the REPL;
    the other methods add styling around it.
    """

    def __init__(self, console_instance: Console | None = None) -> None:
        """
        Initialize the renderer.

        Args:
            console_instance: Optional Rich Console instance to use. Defaults to
                one bound to the sys.stdout current at construction time; later
                redirections of sys.stdout do not affect it.
        """
        self.console = console_instance or Console(file=sys.stdout)

    def write(self, text: str) -> None:
        """
        Append raw text to the transcript.

        No markup, no highlighting and no implicit newline. Backspaces are
        emitted as cursor moves.
        """
        if not text:
            return
        for index, chunk in enumerate(text.split("\b")):
            if index:
                self.console.control(Control.move(x=-1))
            if chunk:
                self.console.print(
                    chunk, end="", markup=False, emoji=False, highlight=False, soft_wrap=True
                )
        self.console.file.flush()

    def prompt(self, text: str) -> None:
        """Show the input prompt."""
        self.console.print(
            text, end="", style="bold cyan", markup=False, emoji=False, highlight=False, soft_wrap=True
        )
        self.console.file.flush()

    def error(self, message: str) -> None:
        """Render an error message in red."""
        if not message.endswith("\n"):
            message += "\n"
        self.console.print(
            message, end="", style="red", markup=False, emoji=False, highlight=False, soft_wrap=True
        )

    def banner(self, intro: str, version: str) -> None:
        """Display the welcome panel."""
        self.console.print(
            Panel(Markdown(f"{intro}\n\n**Version:** {version}"), border_style="cyan")
        )


class StreamWriter(io.TextIOBase):
    """File-like object forwarding writes to an output sink."""

    def __init__(self, sink: OutputSink) -> None:
        self.sink = sink

    def writable(self) -> bool:
        return True

    def write(self, text: str) -> int:
        self.sink.write(text)
        return len(text)
