"""
Tests for editor hook detectors and the hook pipeline.
"""

import pytest

from replpad.execution.python_engine import PythonEngine
from replpad.repl.hooks import BlockOpenerDetector, HookPipeline, ReEditDetector
from replpad.repl.plain_text import PlainTextStore


@pytest.fixture
def engine() -> PythonEngine:
    return PythonEngine()


@pytest.fixture
def store() -> PlainTextStore:
    return PlainTextStore()


class TestBlockOpenerDetector:
    """Tests for block head detection."""

    def test_while_head_gets_indented_continuation(self, engine):
        detector = BlockOpenerDetector()
        assert detector.detect("while true:", engine) == "while true:\n    "

    def test_line_is_trimmed(self, engine):
        detector = BlockOpenerDetector()
        assert detector.detect("   for i in range(3):  ", engine) == "for i in range(3):\n    "

    @pytest.mark.parametrize(
        "line",
        ["def f(x):", "class A:", "if x > 1:", "with open(p) as f:", "try:", "async def g():"],
    )
    def test_block_keywords_match(self, engine, line):
        assert BlockOpenerDetector().detect(line, engine) is not None

    @pytest.mark.parametrize(
        "line",
        ["x = 1", "if x: y = 1", "print('while:')", "iffy:", "classify(x):", "for x in y"],
    )
    def test_non_block_lines_pass_through(self, engine, line):
        assert BlockOpenerDetector().detect(line, engine) is None

    def test_custom_keywords_and_indent(self, engine):
        detector = BlockOpenerDetector(keywords=["repeat"], indent=2)
        assert detector.detect("repeat 3:", engine) == "repeat 3:\n  "
        assert detector.detect("while x:", engine) is None

    def test_empty_keyword_list_never_matches(self, engine):
        assert BlockOpenerDetector(keywords=[]).detect("while x:", engine) is None


class TestReEditDetector:
    """Tests for re-editing existing bindings."""

    def test_stored_text_is_proposed_verbatim(self, engine, store):
        engine.execute("x = 5")
        store.record("x", "x = 5")
        assert ReEditDetector(store).detect("x", engine) == "x = 5"

    def test_stored_text_wins_over_repr(self, engine, store):
        engine.execute("items = [1, 2]")
        store.record("items", "items = list(range(1, 3))")
        assert ReEditDetector(store).detect("items", engine) == "items = list(range(1, 3))"

    def test_unknown_source_is_synthesized_from_repr(self, engine, store):
        engine.execute("y = {'a': 1}")
        assert ReEditDetector(store).detect("y", engine) == "y = {'a': 1}"

    def test_callable_without_source_passes_through(self, engine, store):
        engine.execute("def f():\n    return 1")
        assert ReEditDetector(store).detect("f", engine) is None

    def test_callable_with_source_is_proposed(self, engine, store):
        engine.execute("def f():\n    return 1")
        store.record("f", "def f():\n    return 1")
        assert ReEditDetector(store).detect("f", engine) == "def f():\n    return 1"

    def test_unbound_name_passes_through(self, engine, store):
        assert ReEditDetector(store).detect("missing", engine) is None

    def test_stored_text_for_unbound_name_is_ignored(self, engine, store):
        store.record("gone", "gone = 1")
        assert ReEditDetector(store).detect("gone", engine) is None

    @pytest.mark.parametrize("line", ["x + 1", "x.y", "x()", "for", ""])
    def test_only_bare_identifiers_match(self, engine, store, line):
        engine.execute("x = 1")
        assert ReEditDetector(store).detect(line, engine) is None


class RecordingDetector:
    def __init__(self, proposal):
        self.proposal = proposal
        self.calls = []

    def detect(self, line, engine):
        self.calls.append(line)
        return self.proposal


class TestHookPipeline:
    """Tests for ordered, first-match detection."""

    def test_no_detectors_passes_through(self, engine):
        assert HookPipeline().propose("x", engine) is None

    def test_first_match_wins_and_short_circuits(self, engine):
        pipeline = HookPipeline()
        first = RecordingDetector("first")
        second = RecordingDetector("second")
        pipeline.register(first)
        pipeline.register(second)

        assert pipeline.propose("line", engine) == "first"
        assert first.calls == ["line"]
        assert second.calls == []

    def test_empty_proposal_falls_through(self, engine):
        pipeline = HookPipeline()
        pipeline.register(RecordingDetector(""))
        pipeline.register(RecordingDetector(None))
        last = RecordingDetector("last")
        pipeline.register(last)

        assert pipeline.propose("line", engine) == "last"

    def test_detector_errors_propagate(self, engine):
        class Broken:
            def detect(self, line, engine):
                raise RuntimeError("bad detector")

        pipeline = HookPipeline()
        pipeline.register(Broken())
        with pytest.raises(RuntimeError, match="bad detector"):
            pipeline.propose("x", engine)
