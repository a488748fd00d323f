"""
Editor bridge - hands part of the input to a multi-line editing surface.

While a session is open the line source is suspended. Accepting the session
delivers its text to the pending read exactly as if it had been typed;
cancelling delivers an empty line.
"""

import asyncio
import logging
from contextlib import nullcontext
from enum import Enum
from typing import Protocol

from prompt_toolkit.application import Application
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import Layout
from prompt_toolkit.layout.dimension import Dimension
from prompt_toolkit.lexers import PygmentsLexer
from prompt_toolkit.widgets import Frame, TextArea
from pygments.lexers.python import PythonLexer

from replpad.repl.line_source import LineSource

logger = logging.getLogger(__name__)


class EditorBridgeError(RuntimeError):
    """Programming error in editor hand-off, such as spawning two sessions."""


class EditorOutcome(Enum):
    """How an editor session ended."""

    ACCEPTED = "accepted"
    CANCELLED = "cancelled"
    FAILED = "failed"


class EditorSession:
    """
    One open editing sub-session.

    `accept` and `cancel` are terminal; only the first call has an effect.
    """

    def __init__(self, bridge: "EditorBridge", seed: str) -> None:
        self.seed = seed
        self.text = seed
        self.outcome: EditorOutcome | None = None
        self._bridge = bridge

    @property
    def closed(self) -> bool:
        return self.outcome is not None

    def accept(self, text: str) -> None:
        """Finish with the edited text."""
        if self.closed:
            return
        self.text = text
        self.outcome = EditorOutcome.ACCEPTED
        self._bridge._finish(self, text)

    def cancel(self) -> None:
        """Finish without running anything."""
        if self.closed:
            return
        self.outcome = EditorOutcome.CANCELLED
        self._bridge._finish(self, "")

    def fail(self, exc: BaseException) -> None:
        """Finish because the editing surface itself broke."""
        if self.closed:
            return
        self.outcome = EditorOutcome.FAILED
        self._bridge._fail(self, exc)


class EditorWidget(Protocol):
    """
    Editing surface.

    `open` shows the session's seed and must eventually call
    `session.accept(text)` or `session.cancel()`.
    """

    def open(self, session: EditorSession) -> None: ...


class EditorBridge:
    """Lifecycle of the single editor session."""

    def __init__(self, line_source: LineSource, widget: EditorWidget) -> None:
        """
        Initialize the bridge.

        Args:
            line_source: Source whose pending read receives the editor result
            widget: Surface that does the actual editing
        """
        self.line_source = line_source
        self.widget = widget
        self._session: EditorSession | None = None

    @property
    def session(self) -> EditorSession | None:
        """The open session, if any."""
        return self._session

    def spawn(self, seed: str) -> EditorSession:
        """
        Open an editor session seeded with `seed`.

        Raises:
            EditorBridgeError: If a session is already open
        """
        if self._session is not None:
            raise EditorBridgeError("an editor session is already open")

        session = EditorSession(self, seed)
        self._session = session
        self.line_source.suspend()
        logger.debug("Editor session opened with %d chars", len(seed))

        try:
            self.widget.open(session)
        except BaseException:
            if self._session is session:
                self._teardown(session)
            raise
        return session

    def _teardown(self, session: EditorSession) -> None:
        if self._session is not session:
            raise EditorBridgeError("editor session is not the open session")
        self._session = None
        self.line_source.resume()
        logger.debug("Editor session closed: %s", session.outcome)

    def _finish(self, session: EditorSession, text: str) -> None:
        self._teardown(session)
        if text:
            self.line_source.sink.write(text.rstrip("\n") + "\n")
        self.line_source.resolve(text)

    def _fail(self, session: EditorSession, exc: BaseException) -> None:
        self._teardown(session)
        self.line_source.fail(exc)


class PromptToolkitEditor:
    """
    Terminal editing surface built on a prompt_toolkit Application.

    Esc Enter or Ctrl-S accepts, Ctrl-C or Ctrl-Q cancels.
    """

    def __init__(self, title: str = "Edit", indent: int = 4, keyboard=None) -> None:
        """
        Initialize the editor widget.

        Args:
            title: Frame title
            indent: Spaces inserted by Tab
            keyboard: Optional TerminalKeyboard to detach while editing
        """
        self.title = title
        self.indent = indent
        self.keyboard = keyboard
        self._tasks: set[asyncio.Task] = set()

    def build_application(self, seed: str) -> Application:
        """Create the editor application for a seed document."""
        text_area = TextArea(
            text=seed,
            multiline=True,
            scrollbar=True,
            line_numbers=True,
            lexer=PygmentsLexer(PythonLexer),
            height=Dimension(min=3, max=20),
        )
        text_area.buffer.cursor_position = len(seed)

        kb = KeyBindings()

        @kb.add("escape", "enter")
        @kb.add("c-s")
        def _accept(event) -> None:
            event.app.exit(result=text_area.text)

        @kb.add("c-c")
        @kb.add("c-q")
        def _cancel(event) -> None:
            event.app.exit(result=None)

        @kb.add("tab")
        def _indent(event) -> None:
            event.current_buffer.insert_text(" " * self.indent)

        layout = Layout(Frame(text_area, title=self.title), focused_element=text_area)
        return Application(layout=layout, key_bindings=kb, full_screen=False)

    def open(self, session: EditorSession) -> None:
        task = asyncio.ensure_future(self._run(session))
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_done(session, t))

    async def _run(self, session: EditorSession) -> None:
        detached = self.keyboard.detached() if self.keyboard is not None else nullcontext()
        with detached:
            result = await self.build_application(session.seed).run_async()
        if result is None:
            session.cancel()
        else:
            session.accept(result)

    def _on_done(self, session: EditorSession, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            session.cancel()
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Editor widget failed: %s", exc, exc_info=exc)
            session.fail(exc)
