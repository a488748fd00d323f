"""
In-process Python execution engine.

Runs submitted source against a persistent namespace the way the interactive
interpreter does: statements are executed, and a trailing expression is
evaluated so its value can be shown.
"""

import ast
import itertools
import linecache
import logging
import sys
import traceback
from contextlib import ExitStack, redirect_stderr, redirect_stdout
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Protocol, TextIO

logger = logging.getLogger(__name__)

# Sources containing these outlive their execution through code objects
_CODE_NODES = (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef, ast.Lambda)


class _NoValue:
    """Marker for executions that produced no final-expression value."""

    _instance = None

    def __new__(cls) -> "_NoValue":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_VALUE"

    def __bool__(self) -> bool:
        return False


NO_VALUE = _NoValue()


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of a successful execution."""

    value: Any = NO_VALUE

    @property
    def has_value(self) -> bool:
        """Whether the source ended in an expression with a value to show."""
        return self.value is not NO_VALUE


class RecognizedError(Exception):
    """
    Failure of user code, reported by an execution engine.

    The console prints ``str(error)`` and keeps going. Anything that is not a
    RecognizedError is treated as an integration defect.
    """


class UserCodeError(RecognizedError):
    """Wraps an exception raised while compiling or running user code."""

    def __init__(self, original: BaseException) -> None:
        self.original = original
        self.text = _format_user_exception(original)
        super().__init__(self.text)

    def __str__(self) -> str:
        return self.text


class ExecutionEngine(Protocol):
    """What the console needs from an execution engine."""

    def execute(self, source: str) -> ExecutionResult: ...

    def represent(self, value: Any) -> str: ...

    def environment(self) -> Mapping[str, Any]: ...

    def is_callable(self, value: Any) -> bool: ...


def _format_user_exception(exc: BaseException) -> str:
    if isinstance(exc, SyntaxError):
        return "".join(traceback.format_exception_only(type(exc), exc))

    # Drop the engine's own frames so the traceback starts at user code
    tb = exc.__traceback__
    while tb is not None and tb.tb_frame.f_code.co_filename == __file__:
        tb = tb.tb_next
    if tb is None:
        return "".join(traceback.format_exception_only(type(exc), exc))
    return "".join(traceback.format_exception(type(exc), exc, tb))


class PythonEngine:
    """
    Execution engine adapter backed by the running interpreter.

    The namespace is owned by the caller and passed in by reference; the
    engine never replaces it, only executes against it.
    """

    # Shared by all engines so <input-N> names are unique per process
    _counter = itertools.count(1)

    def __init__(
        self,
        namespace: dict[str, Any] | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
        stdin: TextIO | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            namespace: Global namespace user code runs in
            stdout: Optional stream that replaces sys.stdout while user code runs
            stderr: Optional stream that replaces sys.stderr while user code runs
            stdin: Optional stream that replaces sys.stdin while user code runs
        """
        self.namespace = namespace if namespace is not None else {}
        self.namespace.setdefault("__name__", "__main__")
        self.stdout = stdout
        self.stderr = stderr
        self.stdin = stdin

    def _register_source(self, source: str) -> str:
        """Make the source visible to linecache so tracebacks and inspect work."""
        filename = f"<input-{next(self._counter)}>"
        lines = [line + "\n" for line in source.splitlines()]
        linecache.cache[filename] = (len(source), None, lines, filename)
        return filename

    def _compile(self, source: str, filename: str):
        tree = ast.parse(source, filename=filename, mode="exec")
        defines_code = any(isinstance(node, _CODE_NODES) for node in ast.walk(tree))
        last_expr = None
        if tree.body and isinstance(tree.body[-1], ast.Expr):
            last_expr = ast.Expression(body=tree.body.pop().value)
        body = compile(tree, filename, "exec")
        expr = compile(last_expr, filename, "eval") if last_expr is not None else None
        return body, expr, defines_code

    def execute(self, source: str) -> ExecutionResult:
        """
        Execute source against the namespace.

        Args:
            source: Python source, one or more statements

        Returns:
            ExecutionResult carrying the trailing expression value, if any

        Raises:
            UserCodeError: If the source fails to compile or raises an Exception
        """
        filename = self._register_source(source)
        logger.debug("Executing %s (%d chars)", filename, len(source))

        with ExitStack() as stack:
            try:
                body, expr, defines_code = self._compile(source, filename)
            except Exception as e:
                linecache.cache.pop(filename, None)
                raise UserCodeError(e) from e
            if not defines_code:
                # Nothing can point back at this source once the traceback is built
                stack.callback(linecache.cache.pop, filename, None)

            if self.stdout is not None:
                stack.enter_context(redirect_stdout(self.stdout))
            if self.stderr is not None:
                stack.enter_context(redirect_stderr(self.stderr))
            if self.stdin is not None:
                stack.callback(setattr, sys, "stdin", sys.stdin)
                sys.stdin = self.stdin
            try:
                exec(body, self.namespace)
                value = eval(expr, self.namespace) if expr is not None else NO_VALUE
            except Exception as e:
                raise UserCodeError(e) from e

        if value is None:
            value = NO_VALUE
        return ExecutionResult(value=value)

    def represent(self, value: Any) -> str:
        """Canonical textual representation of a value."""
        try:
            return repr(value)
        except Exception as e:
            # A user-defined __repr__ is user code too
            raise UserCodeError(e) from e

    def environment(self) -> Mapping[str, Any]:
        """Immutable snapshot of the current top-level bindings."""
        return MappingProxyType(
            {name: value for name, value in self.namespace.items() if name != "__builtins__"}
        )

    def is_callable(self, value: Any) -> bool:
        """Whether a value is function-like (no meaningful repr to re-edit)."""
        return callable(value)
