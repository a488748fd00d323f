"""
Editor hooks - decide whether a submitted line opens the structured editor.

Detectors are shallow on purpose: they look at the submitted text and the
environment, never at a parse tree.
"""

import keyword
import logging
import re
from collections.abc import Iterable
from typing import Protocol

from replpad.config.console_config import DEFAULT_BLOCK_KEYWORDS
from replpad.execution.python_engine import ExecutionEngine
from replpad.repl.plain_text import PlainTextStore

logger = logging.getLogger(__name__)


class Detector(Protocol):
    """A rule that may turn a submitted line into an editor seed document."""

    def detect(self, line: str, engine: ExecutionEngine) -> str | None: ...


class BlockOpenerDetector:
    """
    Matches block heads such as ``for x in y:`` or ``def f():``.

    The seed is the head plus one indented, empty continuation line.
    """

    def __init__(self, keywords: Iterable[str] = DEFAULT_BLOCK_KEYWORDS, indent: int = 4) -> None:
        """
        Initialize the detector.

        Args:
            keywords: Keywords that may introduce a block
            indent: Width of the continuation line indent
        """
        self.keywords = list(keywords)
        self.indent = indent
        alternatives = "|".join(re.escape(k) for k in self.keywords)
        self.pattern = re.compile(rf"^(?:{alternatives})\b.*:$")

    def detect(self, line: str, engine: ExecutionEngine) -> str | None:
        stripped = line.strip()
        if not self.keywords or not self.pattern.match(stripped):
            return None
        return stripped + "\n" + " " * self.indent


class ReEditDetector:
    """
    Matches a bare name that is bound in the environment.

    Proposes the text that last defined it, or ``name = <repr>`` when no
    source is known. Callables without recorded source pass through.
    """

    def __init__(self, store: PlainTextStore) -> None:
        self.store = store

    def detect(self, line: str, engine: ExecutionEngine) -> str | None:
        name = line.strip()
        if not name.isidentifier() or keyword.iskeyword(name):
            return None

        environment = engine.environment()
        if name not in environment:
            return None

        stored = self.store.get(name)
        if stored is not None:
            return stored

        value = environment[name]
        if engine.is_callable(value):
            return None
        return f"{name} = {engine.represent(value)}"


class HookPipeline:
    """Ordered detectors with first-match semantics."""

    def __init__(self) -> None:
        self.detectors: list[Detector] = []

    def register(self, detector: Detector) -> None:
        """Append a detector; earlier registrations win."""
        self.detectors.append(detector)

    def propose(self, line: str, engine: ExecutionEngine) -> str | None:
        """
        Run the detectors in registration order.

        Args:
            line: The submitted line
            engine: Execution engine, for environment lookups

        Returns:
            Seed document for the editor, or None to execute the line as-is
        """
        for detector in self.detectors:
            proposal = detector.detect(line, engine)
            if proposal:
                logger.debug("%s intercepted %r", type(detector).__name__, line)
                return proposal
        return None
