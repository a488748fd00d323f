"""
Line source - keystroke and paste ingestion with a pending-line queue.

Keys and pastes arrive as synchronous events; the REPL consumes completed
lines through the asynchronous `next_line`. At most one read request is
outstanding at any time.
"""

import asyncio
import io
import logging
import re
from collections import deque

from replpad.output.renderer import OutputSink

logger = logging.getLogger(__name__)

ENTER = "Enter"
BACKSPACE = "Backspace"
MODIFIER_KEYS = frozenset({"Shift", "Alt", "Control", "Meta"})

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class LineSource:
    """
    Owns the line being composed and the queue of completed lines.

    Completed lines go to the outstanding read request if there is one,
    otherwise they wait in the queue, in order.
    """

    def __init__(self, sink: OutputSink) -> None:
        """
        Initialize the line source.

        Args:
            sink: Transcript that keystrokes are echoed to
        """
        self.sink = sink
        self.current_line = ""
        self.pending: deque[str] = deque()
        self.suspended = False
        self.closed = False
        self._read_request: asyncio.Future[str] | None = None
        self._failure: BaseException | None = None

    @property
    def read_outstanding(self) -> bool:
        """Whether a caller is currently suspended in `next_line`."""
        return self._read_request is not None

    def type_key(self, key: str) -> None:
        """
        Handle one key press.

        Args:
            key: A single character, or a named key such as "Enter" or "Backspace"
        """
        if self.suspended or self.closed:
            return

        if key == ENTER:
            self.sink.write("\n")
            self.submit()
        elif key == BACKSPACE:
            self.erase()
        elif key in MODIFIER_KEYS or len(key) != 1:
            return
        else:
            self.current_line += key
            self.sink.write(key)

    def erase(self) -> None:
        """Remove the last character of the line being composed."""
        if self.suspended or not self.current_line:
            return
        self.current_line = self.current_line[:-1]
        self.sink.write("\b \b")

    def paste(self, text: str) -> None:
        """
        Ingest pasted text.

        Every segment followed by a line break completes a line; the final
        segment only extends the line being composed.
        """
        if self.suspended or self.closed:
            return

        *complete, tail = _LINE_BREAK.split(text)
        if complete:
            logger.debug("Paste completed %d line(s)", len(complete))
        for segment in complete:
            self.current_line += segment
            self.sink.write(segment + "\n")
            self.submit()

        self.current_line += tail
        self.sink.write(tail)

    def submit(self) -> None:
        """Complete the line being composed (Enter)."""
        if self.suspended:
            return
        line = self.current_line
        self.current_line = ""
        self._deliver(line)

    def resolve(self, text: str) -> None:
        """
        Deliver a complete line from outside the keyboard.

        It goes to the outstanding read, or ahead of every queued line.
        """
        self._deliver(text, front=True)

    def interrupt(self) -> None:
        """Discard the line being composed (Ctrl-C) and re-prompt."""
        if self.suspended:
            return
        self.current_line = ""
        self.sink.write("\nKeyboardInterrupt\n")
        if self._read_request is not None:
            self._deliver("")

    def close(self) -> None:
        """
        Stop accepting input.

        Queued lines still drain; after that every read raises EOFError.
        """
        self.closed = True
        request, self._read_request = self._read_request, None
        if request is not None and not request.done():
            logger.debug("Line source closed with a read outstanding")
            request.set_exception(EOFError("line source closed"))

    def fail(self, exc: BaseException) -> None:
        """Fail the outstanding read, or the next one, with an integration error."""
        request, self._read_request = self._read_request, None
        if request is not None and not request.done():
            request.set_exception(exc)
        else:
            self._failure = exc

    def suspend(self) -> None:
        """Stop composing lines while another surface owns input."""
        self.suspended = True

    def resume(self) -> None:
        """Resume normal line composition."""
        self.suspended = False

    def _deliver(self, line: str, front: bool = False) -> None:
        request, self._read_request = self._read_request, None
        if request is not None and not request.done():
            logger.debug("Resolving read request with %r", line)
            request.set_result(line)
        elif front:
            self.pending.appendleft(line)
        else:
            self.pending.append(line)

    async def next_line(self) -> str:
        """
        Get the next completed line.

        Returns a queued line immediately if there is one. Otherwise waits
        on the single read request, creating it if needed.

        Raises:
            EOFError: If the source is closed and nothing is queued
        """
        if self.pending and not self.suspended:
            return self.pending.popleft()

        if self._read_request is None:
            if self._failure is not None:
                failure, self._failure = self._failure, None
                raise failure
            if self.closed:
                raise EOFError("line source closed")
            logger.debug("Creating read request")
            self._read_request = asyncio.get_running_loop().create_future()

        # Shield so one cancelled waiter does not cancel the shared request
        return await asyncio.shield(self._read_request)


class LineReader(io.TextIOBase):
    """
    Blocking file-like view of a line source, used as sys.stdin for user code.

    User code runs in a worker thread; each `readline` asks the event loop
    for the next line and waits for it, so `input()` is served by the same
    keystrokes and pastes as the prompt.
    """

    def __init__(self, source: LineSource) -> None:
        self.source = source
        self.loop: asyncio.AbstractEventLoop | None = None

    def readable(self) -> bool:
        return True

    def readline(self, size: int | None = -1) -> str:
        """Next line with its newline, or "" once the source is closed."""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            raise io.UnsupportedOperation("cannot read lines on the event loop thread")
        if self.loop is None:
            raise io.UnsupportedOperation("line reader is not bound to an event loop")

        future = asyncio.run_coroutine_threadsafe(self.source.next_line(), self.loop)
        try:
            line = future.result()
        except EOFError:
            return ""
        return line + "\n"
