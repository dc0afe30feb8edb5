"""Configuration paths and layout tunables for CodeGraph Viz."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict

BASE_DIR = Path(os.environ.get("CODEGRAPH_VIZ_HOME", str(Path.home() / ".codegraph-viz"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

DEFAULT_WIDTH = 960.0
DEFAULT_HEIGHT = 640.0
LAYOUT_MODES = ("force", "flow", "radial", "pack", "columns")
POSITIVE_SETTINGS = ("leaf_weight",)


@dataclass(frozen=True)
class LayoutSettings:
    """Every knob the layout strategies read.

    ``column_spacing`` and ``ring_spacing`` of ``0`` mean "derive from the
    canvas size".
    """

    width: float = DEFAULT_WIDTH
    height: float = DEFAULT_HEIGHT

    # force simulation
    link_distance: float = 100.0
    charge_strength: float = -300.0
    center_strength: float = 1.0
    collide_k: float = 10.0
    collide_offset: float = 20.0
    alpha_min: float = 0.001
    alpha_decay: float = 1 - 0.001 ** (1 / 300)
    velocity_decay: float = 0.4
    max_ticks: int = 300
    seed: int = 0

    # flow / columns
    band_margin: float = 100.0
    column_spacing: float = 0.0

    # radial / pack
    radial_margin: float = 120.0
    ring_spacing: float = 0.0
    pack_padding: float = 8.0
    leaf_weight: float = 10.0

    # interaction
    focus_scale: float = 1.5
    dim_opacity: float = 0.05
    link_opacity: float = 0.6

    @classmethod
    def load(cls, **overrides: Any) -> "LayoutSettings":
        """Defaults overlaid with the ``[layout]`` TOML section, then ``overrides``."""
        from .config_manager import load_layout_config

        settings = cls()
        stored = load_layout_config()
        for key, value in stored.items():
            try:
                settings = settings.with_value(key, value)
            except (KeyError, TypeError, ValueError):
                continue
        for key, value in overrides.items():
            if value is not None:
                settings = settings.with_value(key, value)
        return settings

    def with_value(self, key: str, value: Any) -> "LayoutSettings":
        return replace(self, **{key: coerce_setting(key, value)})

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def coerce_setting(key: str, value: Any) -> Any:
    """Convert ``value`` to the declared type of setting ``key``.

    Raises:
        KeyError: ``key`` is not a layout setting.
        ValueError: ``value`` is not a finite number, or is not positive
            for a setting in ``POSITIVE_SETTINGS``.
    """
    defaults = LayoutSettings()
    if key not in defaults.as_dict():
        raise KeyError(key)
    kind = type(getattr(defaults, key))
    if isinstance(value, bool):
        raise ValueError(f"{key} expects a number, got {value!r}")
    try:
        number = float(value)
    except TypeError as e:
        raise ValueError(f"{key} expects a number, got {value!r}") from e
    if not math.isfinite(number):
        raise ValueError(f"{key} must be finite, got {value!r}")
    if key in POSITIVE_SETTINGS and number <= 0:
        raise ValueError(f"{key} must be positive, got {value!r}")
    if kind is int:
        return int(number)
    return number
