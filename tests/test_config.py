"""Tests for recorder configuration loading."""

import json
from pathlib import Path

import pytest

from http_vcr.config import DEFAULT_SPEED, SPEED_ENV_VAR, RecorderConfig, load_config


class TestRecorderConfig:
    """Tests for RecorderConfig defaults and env overrides."""

    def test_default_speed_is_fastest(self):
        assert RecorderConfig().speed == DEFAULT_SPEED == "fastest"

    def test_env_override(self):
        config = RecorderConfig.from_env(environ={SPEED_ENV_VAR: "lowest"})
        assert config.speed == "lowest"

    def test_env_override_keeps_base_when_unset(self):
        base = RecorderConfig(speed="fast")
        assert RecorderConfig.from_env(base, environ={}).speed == "fast"

    def test_env_override_does_not_mutate_base(self):
        base = RecorderConfig(speed="fast")
        RecorderConfig.from_env(base, environ={SPEED_ENV_VAR: "lower"})
        assert base.speed == "fast"

    def test_unrecognised_speed_kept_verbatim(self):
        """Unknown speeds are allowed and mean original pace at replay time."""
        assert RecorderConfig(speed="turbo").speed == "turbo"


class TestLoadConfig:
    """Tests for load_config."""

    def test_nested_section(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"recorder": {"speed": "lower"}}), encoding="utf-8")
        assert load_config(path).speed == "lower"

    def test_flat_object(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"speed": "fast"}), encoding="utf-8")
        assert load_config(str(path)).speed == "fast"

    def test_empty_object_uses_defaults(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text("{}", encoding="utf-8")
        assert load_config(path).speed == "fastest"

    def test_non_object_rejected(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)

    def test_invalid_recorder_section(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"recorder": "fast"}), encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(IOError):
            load_config(tmp_path / "missing.json")
