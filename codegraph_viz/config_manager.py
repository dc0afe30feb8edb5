"""Configuration manager for CodeGraph Viz using TOML files."""

from __future__ import annotations

import logging
from typing import Any, Dict

import toml

from .config import CONFIG_FILE, coerce_setting

logger = logging.getLogger(__name__)


def load_full_config() -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    if not CONFIG_FILE.exists():
        return {}
    try:
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", CONFIG_FILE, exc)
        return {}


def _save_full_config(config: Dict[str, Any]) -> bool:
    """Write entire config dict to TOML file, preserving all sections."""
    try:
        CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
        with open(CONFIG_FILE, "w", encoding="utf-8") as f:
            toml.dump(config, f)
        return True
    except OSError as exc:
        logger.warning("Failed to write config %s: %s", CONFIG_FILE, exc)
        return False


def load_layout_config() -> Dict[str, Any]:
    """Load the ``[layout]`` section, or an empty dict."""
    section = load_full_config().get("layout", {})
    return dict(section) if isinstance(section, dict) else {}


def save_layout_config(key: str, value: Any) -> bool:
    """Persist one layout setting.

    Preserves other sections and keys in the file.

    Args:
        key: A :class:`~codegraph_viz.config.LayoutSettings` field name.
        value: Raw value; converted to the field's type.

    Returns:
        True if saved successfully, False otherwise.

    Raises:
        KeyError: Unknown setting.
        ValueError: Value cannot be converted.
    """
    coerced = coerce_setting(key, value)
    config = load_full_config()
    layout = dict(config.get("layout", {}))
    layout[key] = coerced
    config["layout"] = layout
    return _save_full_config(config)


def clear_layout_config() -> bool:
    """Remove ``[layout]`` section from config, resetting to defaults."""
    config = load_full_config()
    config.pop("layout", None)
    return _save_full_config(config)
