"""
Output rendering for replpad.
"""

from .renderer import StreamWriter, TranscriptRenderer

__all__ = ["StreamWriter", "TranscriptRenderer"]
