"""
ReplPad - Interactive Python console with structured editing.

A line-oriented console that feeds a Python execution engine and can route
block openers and re-edits of existing values into a multi-line editor.
"""

__version__ = "0.1.0"
__author__ = "ReplPad Team"
__license__ = "MIT"

__all__ = ["__version__"]
