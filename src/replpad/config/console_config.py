"""
Console configuration for ReplPad.

Manages prompt, editor and hook preferences.
Uses hierarchical loading: explicit path -> .replpad/config/ -> ~/.replpad/config/ -> defaults
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_KEYWORDS = [
    "if",
    "for",
    "while",
    "def",
    "class",
    "with",
    "try",
    "async",
    "match",
]

DEFAULT_INTRO = "ReplPad - Python console. Block openers and bare names open the editor."


@dataclass
class ConsoleConfig:
    """Console behavior configuration."""

    # Prompt and banner
    prompt: str = ">>> "
    intro: str = DEFAULT_INTRO

    # Editor hooks
    indent: int = 4
    block_keywords: list[str] = field(default_factory=lambda: list(DEFAULT_BLOCK_KEYWORDS))
    editor_title: str = "Edit (Esc Enter / Ctrl-S to run, Ctrl-C to cancel)"

    # Executed once before the first prompt
    startup_script: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary format."""
        return {
            "console": {
                "prompt": self.prompt,
                "intro": self.intro,
                "indent": self.indent,
                "block_keywords": self.block_keywords,
                "editor_title": self.editor_title,
                "startup_script": self.startup_script,
            }
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "ConsoleConfig":
        """Create ConsoleConfig from dictionary."""
        console_data = (data or {}).get("console", {}) or {}
        defaults = cls()
        return cls(
            prompt=console_data.get("prompt", defaults.prompt),
            intro=console_data.get("intro", defaults.intro),
            indent=int(console_data.get("indent", defaults.indent)),
            block_keywords=list(console_data.get("block_keywords", defaults.block_keywords)),
            editor_title=console_data.get("editor_title", defaults.editor_title),
            startup_script=console_data.get("startup_script", defaults.startup_script) or "",
        )


def _read_config(path: Path) -> ConsoleConfig:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return ConsoleConfig.from_dict(data)


def load_console_config(
    working_dir: Optional[Path] = None,
    config_path: Optional[Path] = None,
) -> ConsoleConfig:
    """
    Load console configuration with hierarchical override system.

    Priority (highest to lowest):
    1. Explicit path (--config)
    2. Project-specific: ./.replpad/config/console.yaml
    3. User-global: ~/.replpad/config/console.yaml
    4. Framework default: embedded defaults

    Args:
        working_dir: Project working directory (for project-specific config)
        config_path: Explicit configuration file; errors here are not swallowed

    Returns:
        ConsoleConfig instance
    """
    if config_path is not None:
        logger.info("Loading console config from %s", config_path)
        return _read_config(Path(config_path))

    # Try project-specific config
    if working_dir:
        project_config = Path(working_dir) / ".replpad" / "config" / "console.yaml"
        if project_config.exists():
            try:
                return _read_config(project_config)
            except (OSError, yaml.YAMLError, AttributeError, TypeError, ValueError) as e:
                logger.warning("Ignoring invalid project config %s: %s", project_config, e)

    # Try user-global config
    user_config = Path.home() / ".replpad" / "config" / "console.yaml"
    if user_config.exists():
        try:
            return _read_config(user_config)
        except (OSError, yaml.YAMLError, AttributeError, TypeError, ValueError) as e:
            logger.warning("Ignoring invalid user config %s: %s", user_config, e)

    # Return defaults
    return ConsoleConfig()


def save_console_config(config: ConsoleConfig, global_config: bool = True) -> Path:
    """
    Save console configuration to file.

    Args:
        config: ConsoleConfig to save
        global_config: If True, save to ~/.replpad/config/console.yaml
                      If False, save to ./.replpad/config/console.yaml

    Returns:
        Path where config was saved
    """
    if global_config:
        config_path = Path.home() / ".replpad" / "config" / "console.yaml"
    else:
        config_path = Path.cwd() / ".replpad" / "config" / "console.yaml"

    # Create directory if needed
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)

    return config_path
