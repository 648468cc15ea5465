"""TOML configuration loading for CodeFlow."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import toml

logger = logging.getLogger(__name__)

VISUALIZER_SECTION = "visualizer"
KNOWN_KEYS = {"debounce_ms", "mode", "max_file_size", "ignore_patterns"}


def load_full_config(config_file: Path) -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    if not config_file.exists():
        return {}
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Could not read %s, using defaults: %s", config_file, exc)
        return {}


def load_visualizer_config(config_file: Path) -> Dict[str, Any]:
    """Return the ``[visualizer]`` table, restricted to known keys.

    Unknown keys are reported and dropped so a typo never silently changes
    behaviour.
    """
    section = load_full_config(config_file).get(VISUALIZER_SECTION, {})
    if not isinstance(section, dict):
        logger.warning("[%s] in %s is not a table, ignoring it", VISUALIZER_SECTION, config_file)
        return {}
    unknown = set(section) - KNOWN_KEYS
    if unknown:
        logger.warning("Ignoring unknown [%s] keys: %s", VISUALIZER_SECTION, ", ".join(sorted(unknown)))
    return {k: v for k, v in section.items() if k in KNOWN_KEYS}


def save_visualizer_config(config_file: Path, values: Dict[str, Any]) -> bool:
    """Write the ``[visualizer]`` table, preserving other sections."""
    config = load_full_config(config_file)
    config[VISUALIZER_SECTION] = {k: v for k, v in values.items() if k in KNOWN_KEYS}
    config_file.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(config_file, "w", encoding="utf-8") as f:
            toml.dump(config, f)
        return True
    except OSError as exc:
        logger.warning("Could not write %s: %s", config_file, exc)
        return False
