"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- load_config() precedence: defaults < YAML < env vars < kwargs
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from tsplane.config.loader import GLOBAL_CONFIG_PATH, _load_yaml, load_config
from tsplane.core.errors import ConfigError, ErrorCode


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        """Returns empty dict when file doesn't exist."""
        result = _load_yaml(tmp_path / "nonexistent.yaml")
        assert result == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        """Loads valid YAML content."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("logging:\n  level: DEBUG\n")

        result = _load_yaml(yaml_file)
        assert result == {"logging": {"level": "DEBUG"}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        """Returns empty dict for empty file."""
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")

        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        """Raises ConfigError for invalid YAML syntax."""
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("logging:\n  level:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_raises_config_error_for_non_mapping(self, tmp_path: Path) -> None:
        """A YAML list at the top level is rejected."""
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            _load_yaml(yaml_file)


class TestLoadConfig:
    """Tests for load_config function."""

    def test_defaults_without_any_file(self, tmp_path: Path) -> None:
        """Built-in defaults apply when no YAML exists."""
        with patch("tsplane.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config()

        assert config.logging.level == "INFO"
        assert config.discovery.config_markers == ["tsconfig.json"]
        assert config.engine.max_file_size_mb == 10
        assert config.engine.default_new_line is None

    def test_loads_yaml_file(self, tmp_path: Path) -> None:
        """Values from an explicit YAML file are applied."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("engine:\n  max_file_size_mb: 2\n  default_new_line: crlf\n")

        config = load_config(yaml_file)

        assert config.engine.max_file_size_mb == 2
        assert config.engine.default_new_line == "crlf"

    def test_env_vars_override_yaml(self, tmp_path: Path) -> None:
        """Environment variables override YAML values."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("logging:\n  level: DEBUG\n")

        with patch.dict(os.environ, {"TSPLANE__LOGGING__LEVEL": "WARNING"}):
            config = load_config(yaml_file)

        assert config.logging.level == "WARNING"

    def test_kwargs_override_all(self, tmp_path: Path) -> None:
        """Direct kwargs have the highest precedence."""
        with (
            patch("tsplane.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            patch.dict(os.environ, {"TSPLANE__LOGGING__LEVEL": "WARNING"}),
        ):
            config = load_config(logging={"level": "ERROR"})

        assert config.logging.level == "ERROR"

    def test_raises_config_error_for_invalid_value(self, tmp_path: Path) -> None:
        """Validation failures surface as ConfigError."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("engine:\n  max_file_size_mb: 0\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(yaml_file)
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE


class TestGlobalConfigPath:
    """Tests for GLOBAL_CONFIG_PATH constant."""

    def test_is_path_object(self) -> None:
        assert isinstance(GLOBAL_CONFIG_PATH, Path)

    def test_is_in_user_config(self) -> None:
        assert ".config" in str(GLOBAL_CONFIG_PATH)
        assert GLOBAL_CONFIG_PATH.name == "config.yaml"
