"""
Terminal keyboard - feeds raw key presses into the line source.
"""

import logging
from contextlib import ExitStack, contextmanager
from typing import Iterator

from prompt_toolkit.input import Input, create_input
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys
from prompt_toolkit.output import Output, create_output

from replpad.repl.line_source import BACKSPACE, ENTER, LineSource

logger = logging.getLogger(__name__)


class TerminalKeyboard:
    """
    Reads key presses in raw mode and routes them to a LineSource.

    Bracketed paste is enabled while attached so multi-line pastes arrive as
    one event.
    """

    def __init__(
        self,
        line_source: LineSource,
        input: Input | None = None,
        output: Output | None = None,
    ) -> None:
        self.line_source = line_source
        self.input = input
        self.output = output
        self._stack: ExitStack | None = None

    @property
    def attached(self) -> bool:
        return self._stack is not None

    def handle_key_press(self, key_press: KeyPress) -> None:
        """Route a single key press."""
        key = key_press.key

        if key in (Keys.ControlM, Keys.ControlJ):
            self.line_source.type_key(ENTER)
        elif key == Keys.ControlH:
            self.line_source.type_key(BACKSPACE)
        elif key == Keys.BracketedPaste:
            self.line_source.paste(key_press.data)
        elif key == Keys.ControlC:
            self.line_source.interrupt()
        elif key == Keys.ControlD:
            if not self.line_source.current_line:
                logger.debug("Ctrl-D on empty line, closing input")
                self.line_source.close()
        elif len(key) == 1:
            self.line_source.type_key(key)

    def _on_input_ready(self) -> None:
        for key_press in self.input.read_keys():
            self.handle_key_press(key_press)
        if self.input.closed:
            self.line_source.close()

    def attach(self) -> None:
        """Start reading keys from the terminal."""
        if self._stack is not None:
            return
        if self.input is None:
            self.input = create_input()
        if self.output is None:
            self.output = create_output()

        stack = ExitStack()
        stack.enter_context(self.input.raw_mode())
        stack.enter_context(self.input.attach(self._on_input_ready))
        self.output.enable_bracketed_paste()
        self.output.flush()
        stack.callback(self._disable_bracketed_paste)
        self._stack = stack

    def detach(self) -> None:
        """Stop reading keys and restore the terminal."""
        stack, self._stack = self._stack, None
        if stack is not None:
            stack.close()

    def _disable_bracketed_paste(self) -> None:
        self.output.disable_bracketed_paste()
        self.output.flush()

    @contextmanager
    def detached(self) -> Iterator[None]:
        """Temporarily hand the terminal to something else."""
        was_attached = self.attached
        self.detach()
        try:
            yield
        finally:
            if was_attached:
                self.attach()

    def __enter__(self) -> "TerminalKeyboard":
        self.attach()
        return self

    def __exit__(self, *exc_info) -> None:
        self.detach()
