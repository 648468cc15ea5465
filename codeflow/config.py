"""Runtime settings for the graph engine and the watcher."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

from .config_manager import load_visualizer_config

logger = logging.getLogger(__name__)

BASE_DIR = Path(os.environ.get("CODEFLOW_HOME", str(Path.home() / ".codeflow"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

MODE_SIMPLE = "simple"
MODE_ADVANCED = "advanced"
MODES = (MODE_SIMPLE, MODE_ADVANCED)

DEFAULT_IGNORE_PATTERNS = [
    "node_modules",
    ".git",
    ".DS_Store",
    "dist",
    "build",
    ".env",
    "package-lock.json",
    "yarn.lock",
    "__pycache__",
    ".vscode",
]
SKIPPED_SUFFIXES = (".lock", ".png", ".jpg")

# Overrides from the [visualizer] table of ~/.codeflow/config.toml
_toml_config = load_visualizer_config(CONFIG_FILE)


def int_setting(values: dict, key: str, default: int) -> int:
    """Integer under *key*, or *default* when it is missing or not a number."""
    if key not in values:
        return default
    try:
        return int(values[key])
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer %s=%r in configuration", key, values[key])
        return default


def pattern_setting(values: dict, key: str, default: List[str]) -> List[str]:
    """List of strings under *key*; anything else falls back to *default*."""
    if key not in values:
        return list(default)
    raw = values[key]
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        logger.warning("Ignoring %s=%r in configuration: expected a list of strings", key, raw)
        return list(default)
    return list(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return default


DEBOUNCE_MS = _env_int("CODEFLOW_DEBOUNCE_MS", int_setting(_toml_config, "debounce_ms", 500))
DEFAULT_MODE = os.environ.get("CODEFLOW_MODE", _toml_config.get("mode", MODE_ADVANCED))
if DEFAULT_MODE not in MODES:
    logger.warning("Unknown mode %r in configuration, using %r", DEFAULT_MODE, MODE_ADVANCED)
    DEFAULT_MODE = MODE_ADVANCED
MAX_FILE_SIZE = int_setting(_toml_config, "max_file_size", 1_000_000)
IGNORE_PATTERNS = pattern_setting(_toml_config, "ignore_patterns", DEFAULT_IGNORE_PATTERNS)
