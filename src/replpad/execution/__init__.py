"""
Execution engine adapters.
"""

from .python_engine import (
    NO_VALUE,
    ExecutionEngine,
    ExecutionResult,
    PythonEngine,
    RecognizedError,
    UserCodeError,
)

__all__ = [
    "NO_VALUE",
    "ExecutionEngine",
    "ExecutionResult",
    "PythonEngine",
    "RecognizedError",
    "UserCodeError",
]
