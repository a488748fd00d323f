"""
Pytest configuration and fixtures for all tests.
"""

from io import StringIO

import pytest
from rich.console import Console

from replpad.config import ConsoleConfig
from replpad.output.renderer import TranscriptRenderer
from replpad.repl.editor import EditorSession
from replpad.repl.engine import REPLEngine


class RecordingWidget:
    """Editor widget that only remembers the sessions it was given."""

    def __init__(self) -> None:
        self.sessions: list[EditorSession] = []

    def open(self, session: EditorSession) -> None:
        self.sessions.append(session)


class RecordingSink:
    """Output sink collecting raw writes."""

    def __init__(self) -> None:
        self.writes: list[str] = []

    def write(self, text: str) -> None:
        self.writes.append(text)

    @property
    def text(self) -> str:
        return "".join(self.writes)


@pytest.fixture
def test_console() -> Console:
    """Create a test console that writes to a StringIO."""
    return Console(file=StringIO(), width=120, legacy_windows=False)


@pytest.fixture
def renderer(test_console: Console) -> TranscriptRenderer:
    """Create a renderer with test console."""
    return TranscriptRenderer(console_instance=test_console)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def widget() -> RecordingWidget:
    return RecordingWidget()


@pytest.fixture
def repl(renderer: TranscriptRenderer, widget: RecordingWidget) -> REPLEngine:
    """REPL engine with a captured transcript and a recording editor."""
    return REPLEngine(config=ConsoleConfig(intro=""), renderer=renderer, widget=widget)
