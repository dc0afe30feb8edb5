"""Tests for layout settings and the TOML config store."""

from pathlib import Path

import pytest
import toml

from codegraph_viz import config_manager
from codegraph_viz.config import LayoutSettings, coerce_setting


class TestLayoutSettings:
    """Tests for LayoutSettings."""

    def test_defaults(self):
        settings = LayoutSettings()
        assert settings.link_distance == 100.0
        assert settings.charge_strength == -300.0
        assert settings.velocity_decay == 0.4
        assert settings.alpha_decay == pytest.approx(1 - 0.001 ** (1 / 300))

    def test_with_value_coerces(self):
        settings = LayoutSettings().with_value("max_ticks", "50")
        assert settings.max_ticks == 50
        assert isinstance(settings.max_ticks, int)
        assert settings.with_value("width", 1200).width == 1200.0

    def test_coerce_rejects_unknown_key(self):
        with pytest.raises(KeyError):
            coerce_setting("gravity", 1)

    def test_coerce_rejects_bad_value(self):
        with pytest.raises(ValueError):
            coerce_setting("width", "wide")
        with pytest.raises(ValueError):
            coerce_setting("width", True)

    def test_coerce_rejects_non_finite(self):
        for key, value in [("max_ticks", "inf"), ("width", "nan"), ("seed", float("-inf"))]:
            with pytest.raises(ValueError, match="finite"):
                coerce_setting(key, value)

    def test_coerce_rejects_non_positive_leaf_weight(self):
        with pytest.raises(ValueError, match="positive"):
            coerce_setting("leaf_weight", 0)
        with pytest.raises(ValueError):
            coerce_setting("leaf_weight", "-2")
        assert coerce_setting("leaf_weight", "0.5") == 0.5

    def test_coerce_rejects_non_scalar(self):
        with pytest.raises(ValueError):
            coerce_setting("width", [1, 2])

    def test_load_overlays_config_and_overrides(self, _isolated_config: Path):
        _isolated_config.write_text(
            toml.dumps({"layout": {"link_distance": 60, "bogus": 1, "seed": "x"}}),
            encoding="utf-8",
        )
        settings = LayoutSettings.load(width=500, height=None)

        assert settings.link_distance == 60.0
        assert settings.width == 500.0
        assert settings.height == LayoutSettings().height
        assert settings.seed == 0

    def test_load_skips_unusable_stored_values(self, _isolated_config: Path):
        _isolated_config.write_text(
            toml.dumps({"layout": {"width": [1, 2], "height": {"a": 1}, "leaf_weight": 0, "seed": 9}}),
            encoding="utf-8",
        )
        settings = LayoutSettings.load()
        defaults = LayoutSettings()

        assert settings.width == defaults.width
        assert settings.height == defaults.height
        assert settings.leaf_weight == defaults.leaf_weight
        assert settings.seed == 9


class TestConfigManager:
    """Tests for the [layout] section helpers."""

    def test_missing_file_is_empty(self):
        assert config_manager.load_layout_config() == {}

    def test_save_and_load(self, _isolated_config: Path):
        assert config_manager.save_layout_config("charge_strength", "-120")
        assert config_manager.load_layout_config() == {"charge_strength": -120.0}
        assert _isolated_config.exists()

    def test_save_preserves_other_sections(self, _isolated_config: Path):
        _isolated_config.write_text(toml.dumps({"ui": {"theme": "dark"}}), encoding="utf-8")
        config_manager.save_layout_config("seed", 7)

        stored = toml.loads(_isolated_config.read_text(encoding="utf-8"))
        assert stored["ui"] == {"theme": "dark"}
        assert stored["layout"] == {"seed": 7}

    def test_save_rejects_unknown_key(self):
        with pytest.raises(KeyError):
            config_manager.save_layout_config("nope", 1)

    def test_clear(self, _isolated_config: Path):
        config_manager.save_layout_config("seed", 3)
        assert config_manager.clear_layout_config()
        assert config_manager.load_layout_config() == {}

    def test_corrupt_file_ignored(self, _isolated_config: Path):
        _isolated_config.write_text("[layout\nseed = ", encoding="utf-8")
        assert config_manager.load_full_config() == {}
