"""Tests for YAML configuration loading."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from excel_export.config import DEFAULTS, load_config
from excel_export.errors import ConfigError


def _write(tmp_path, text):
    path = tmp_path / "export.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestLoadConfig:
    def test_defaults(self):
        assert load_config() == DEFAULTS

    def test_defaults_not_shared(self):
        config = load_config()
        config["fsync"] = False
        assert DEFAULTS["fsync"] is True

    def test_yaml_file(self, tmp_path):
        path = _write(tmp_path, "on_projection_error: skip\ndate_format: dd/mm/yyyy\n")
        config = load_config(path)
        assert config["on_projection_error"] == "skip"
        assert config["date_format"] == "dd/mm/yyyy"
        assert config["fsync"] is True

    def test_empty_file(self, tmp_path):
        assert load_config(_write(tmp_path, "")) == DEFAULTS

    def test_overrides_win(self, tmp_path):
        path = _write(tmp_path, "on_projection_error: skip\n")
        config = load_config(path, on_projection_error="raise", fsync=False)
        assert config["on_projection_error"] == "raise"
        assert config["fsync"] is False

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(str(tmp_path / "absent.yaml"))

    def test_malformed_yaml(self, tmp_path):
        with pytest.raises(ConfigError, match="Cannot parse"):
            load_config(_write(tmp_path, "date_format: [unclosed\n"))

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ConfigError, match="mapping"):
            load_config(_write(tmp_path, "- a\n- b\n"))

    @pytest.mark.parametrize("overrides", [
        {"colour": "red"},
        {"on_projection_error": "ignore"},
        {"date_format": ""},
        {"date_format": 5},
        {"temp_dir": 3},
        {"fsync": "yes"},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ConfigError):
            load_config(**overrides)
