"""
Configuration management for replpad.
"""

from .console_config import ConsoleConfig, load_console_config, save_console_config

__all__ = ["ConsoleConfig", "load_console_config", "save_console_config"]
