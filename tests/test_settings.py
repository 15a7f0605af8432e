"""Tests for YAML-backed settings."""

from pathlib import Path

import yaml

from config import settings as settings_module
from config.settings import Settings, get_settings, reset_settings


class TestSettings:

    def test_defaults_when_file_missing(self, tmp_path):
        settings = Settings.load(tmp_path / "missing.yaml")

        assert settings.environment.activation == "uniform"
        assert settings.environment.randomize_order is None
        assert settings.environment.max_iterations == 1_000_000
        assert settings.scheduler.kind is None

    def test_load_overrides(self, tmp_path):
        path = tmp_path / "sim.yaml"
        path.write_text(yaml.dump({
            "environment": {"randomize_order": True, "seed": 4, "unknown": 1},
            "scheduler": {"kind": "priority"},
        }))

        settings = Settings.load(path)

        assert settings.environment.randomize_order is True
        assert settings.environment.seed == 4
        assert not hasattr(settings.environment, "unknown")
        assert settings.scheduler.kind == "priority"
        assert settings.events.history_limit == 1000

    def test_save_then_load(self, tmp_path):
        settings = Settings()
        settings.environment.activation_count = 3
        settings.events.history_limit = 10
        path = tmp_path / "nested" / "sim.yaml"

        settings.save(path)
        loaded = Settings.load(path)

        assert loaded.environment.activation_count == 3
        assert loaded.events.history_limit == 10

    def test_packaged_config_keeps_randomize_order_unspecified(self):
        path = Path(settings_module.__file__).parent / "simulation.yaml"
        assert Settings.load(path).environment.randomize_order is None

    def test_get_settings_is_cached(self):
        reset_settings()
        try:
            assert get_settings() is get_settings()
        finally:
            reset_settings()
