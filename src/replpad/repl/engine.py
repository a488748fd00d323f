"""
REPL Engine - the console's read/edit/execute loop.
"""

import asyncio
import logging
from enum import Enum
from typing import Any

from replpad import __version__
from replpad.config.console_config import ConsoleConfig
from replpad.execution.python_engine import ExecutionEngine, PythonEngine, RecognizedError
from replpad.output.renderer import StreamWriter, TranscriptRenderer
from replpad.repl.editor import EditorBridge, EditorWidget, PromptToolkitEditor
from replpad.repl.hooks import BlockOpenerDetector, HookPipeline, ReEditDetector
from replpad.repl.keyboard import TerminalKeyboard
from replpad.repl.line_source import LineReader, LineSource
from replpad.repl.plain_text import PlainTextStore

logger = logging.getLogger(__name__)


class ReplState(Enum):
    """Where the loop is within one iteration."""

    AWAITING_LINE = "awaiting_line"
    AWAITING_EDITOR = "awaiting_editor"
    EXECUTING = "executing"


class REPLEngine:
    """
    Interactive REPL engine for ReplPad.

    Each iteration prompts, waits for a line, lets the hook pipeline divert it
    into the editor, executes the final text and attributes the resulting
    environment change to that text.
    """

    def __init__(
        self,
        config: ConsoleConfig | None = None,
        renderer: TranscriptRenderer | None = None,
        engine: ExecutionEngine | None = None,
        widget: EditorWidget | None = None,
    ) -> None:
        """
        Initialize the REPL engine.

        Args:
            config: Console configuration (defaults if omitted)
            renderer: Transcript renderer; every component writes through it
            engine: Execution engine; a PythonEngine over `namespace` by default
            widget: Editing surface; the prompt_toolkit editor by default
        """
        self.config = config or ConsoleConfig()
        self.renderer = renderer or TranscriptRenderer()
        self.running = False
        self.state = ReplState.AWAITING_LINE

        self.line_source = LineSource(self.renderer)
        self.stdin = LineReader(self.line_source)

        # The execution environment belongs to the loop, the engine only borrows it
        self.namespace: dict[str, Any] = {"__name__": "__main__"}
        if engine is None:
            writer = StreamWriter(self.renderer)
            engine = PythonEngine(self.namespace, stdout=writer, stderr=writer, stdin=self.stdin)
        self.engine = engine

        self.store = PlainTextStore()
        self.pipeline = HookPipeline()
        self.pipeline.register(
            BlockOpenerDetector(keywords=self.config.block_keywords, indent=self.config.indent)
        )
        self.pipeline.register(ReEditDetector(self.store))

        if widget is None:
            widget = PromptToolkitEditor(title=self.config.editor_title, indent=self.config.indent)
        self.bridge = EditorBridge(self.line_source, widget)
        self.keyboard: TerminalKeyboard | None = None

    def _display_welcome(self) -> None:
        if self.config.intro:
            self.renderer.banner(self.config.intro, __version__)

    async def _run_code(self, source: str):
        """Execute in a worker thread so the loop can keep serving input() reads."""
        self.stdin.loop = asyncio.get_running_loop()
        return await asyncio.to_thread(self.engine.execute, source)

    async def run_startup(self) -> None:
        """Run the configured startup script, without source tracking."""
        script = self.config.startup_script
        if not script.strip():
            return
        logger.info("Running startup script")
        try:
            await self._run_code(script)
        except RecognizedError as e:
            self.renderer.error(str(e))

    async def step(self) -> str | None:
        """
        Run one iteration of the loop.

        Returns:
            The source that was executed, or None if nothing ran

        Raises:
            EOFError: If input was closed
        """
        self.state = ReplState.AWAITING_LINE
        self.renderer.prompt(self.config.prompt)
        line = await self.line_source.next_line()

        trimmed = line.strip()
        if not trimmed:
            return None

        try:
            proposal = self.pipeline.propose(trimmed, self.engine)
        except RecognizedError as e:
            self.renderer.error(str(e))
            return None

        if proposal is not None:
            self.state = ReplState.AWAITING_EDITOR
            self.bridge.spawn(proposal)
            line = await self.line_source.next_line()
            if not line.strip():
                logger.debug("Editor returned nothing, skipping")
                return None

        self.state = ReplState.EXECUTING
        executed = await self._execute(line)
        self.state = ReplState.AWAITING_LINE
        return line if executed else None

    async def _execute(self, source: str) -> bool:
        before = self.engine.environment()
        try:
            result = await self._run_code(source)
        except RecognizedError as e:
            self.renderer.error(str(e))
            return False

        if result.has_value:
            try:
                self.renderer.write(self.engine.represent(result.value) + "\n")
            except RecognizedError as e:
                self.renderer.error(str(e))

        after = self.engine.environment()
        self.store.reconcile(before, after, source, self.engine.is_callable)
        return True

    async def run(self) -> None:
        """
        Run the REPL loop until input is closed or `stop` is called.

        Errors that are not user code errors propagate.
        """
        self.running = True
        self._display_welcome()
        await self.run_startup()

        try:
            while self.running:
                try:
                    await self.step()
                except EOFError:
                    # Ctrl-D - exit
                    self.renderer.write("\n")
                    break
        finally:
            self.running = False

    def stop(self) -> None:
        """Ask the loop to finish; a pending read ends with EOF."""
        self.running = False
        self.line_source.close()

    async def run_interactive(self) -> None:
        """Run the loop reading keys from the terminal."""
        self.keyboard = TerminalKeyboard(self.line_source)
        if isinstance(self.bridge.widget, PromptToolkitEditor):
            self.bridge.widget.keyboard = self.keyboard
        with self.keyboard:
            await self.run()
