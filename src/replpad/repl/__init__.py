"""
REPL (Read-Eval-Print Loop) engine for replpad.
"""

# Imported on first access; importing the engine pulls in prompt_toolkit
def __getattr__(name):
    if name == "REPLEngine":
        from replpad.repl.engine import REPLEngine
        return REPLEngine
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = ["REPLEngine"]
