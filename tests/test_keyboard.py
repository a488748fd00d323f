"""
Tests for routing terminal key presses into the line source.
"""

import asyncio

import pytest
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys

from replpad.repl.keyboard import TerminalKeyboard
from replpad.repl.line_source import LineSource


@pytest.fixture
def source(sink) -> LineSource:
    return LineSource(sink)


@pytest.fixture
def keyboard(source) -> TerminalKeyboard:
    return TerminalKeyboard(source)


def press(keyboard: TerminalKeyboard, key, data: str | None = None) -> None:
    keyboard.handle_key_press(KeyPress(key, data))


def test_printable_keys_compose_line(keyboard, source, sink):
    for char in "hi!":
        press(keyboard, char)
    assert source.current_line == "hi!"
    assert sink.text == "hi!"


def test_enter_submits(keyboard, source):
    press(keyboard, "a")
    press(keyboard, Keys.ControlM, "\r")
    assert list(source.pending) == ["a"]


def test_ctrl_j_submits(keyboard, source):
    press(keyboard, "a")
    press(keyboard, Keys.ControlJ, "\n")
    assert list(source.pending) == ["a"]


def test_backspace_erases(keyboard, source):
    press(keyboard, "a")
    press(keyboard, "b")
    press(keyboard, Keys.Backspace, "\x7f")
    assert source.current_line == "a"


def test_bracketed_paste(keyboard, source):
    press(keyboard, Keys.BracketedPaste, "x = 1\ny = 2\npartial")
    assert list(source.pending) == ["x = 1", "y = 2"]
    assert source.current_line == "partial"


def test_navigation_keys_are_ignored(keyboard, source, sink):
    press(keyboard, Keys.Left)
    press(keyboard, Keys.Up)
    press(keyboard, Keys.F1)
    assert source.current_line == ""
    assert sink.writes == []


@pytest.mark.asyncio
async def test_ctrl_c_interrupts_pending_read(keyboard, source):
    reader = asyncio.create_task(source.next_line())
    await asyncio.sleep(0)
    press(keyboard, "x")

    press(keyboard, Keys.ControlC)

    assert await reader == ""
    assert source.current_line == ""


def test_ctrl_d_on_empty_line_closes(keyboard, source):
    press(keyboard, Keys.ControlD)
    assert source.closed


def test_ctrl_d_with_text_does_nothing(keyboard, source):
    press(keyboard, "x")
    press(keyboard, Keys.ControlD)
    assert not source.closed
    assert source.current_line == "x"


def test_detached_without_attach_is_noop(keyboard):
    with keyboard.detached():
        assert not keyboard.attached
    assert not keyboard.attached
