"""Tests for workspace settings models."""

import pytest
from pydantic import ValidationError

from tsplane.config.models import (
    DiscoveryConfig,
    EngineConfig,
    LogOutputConfig,
    TsPlaneConfig,
)


class TestLogOutputConfig:
    """Log output destination validation."""

    @pytest.mark.parametrize("destination", ["stderr", "stdout"])
    def test_console_destinations_accepted(self, destination: str) -> None:
        assert LogOutputConfig(destination=destination).destination == destination

    def test_relative_file_destination_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LogOutputConfig(destination="logs/out.log")

    def test_absolute_file_destination_accepted(self) -> None:
        assert LogOutputConfig(destination="/var/log/tsplane.log").destination == (
            "/var/log/tsplane.log"
        )


class TestDiscoveryConfig:
    """Config marker validation."""

    def test_default_marker(self) -> None:
        assert DiscoveryConfig().config_markers == ["tsconfig.json"]

    def test_custom_markers_kept_in_order(self) -> None:
        config = DiscoveryConfig(config_markers=["tsconfig.json", "jsconfig.json"])
        assert config.config_markers == ["tsconfig.json", "jsconfig.json"]

    @pytest.mark.parametrize("markers", [[], ["sub/tsconfig.json"], [""]])
    def test_invalid_markers_rejected(self, markers: list[str]) -> None:
        with pytest.raises(ValidationError):
            DiscoveryConfig(config_markers=markers)


class TestEngineConfig:
    """Engine limits and defaults."""

    def test_max_file_size_bytes(self) -> None:
        assert EngineConfig(max_file_size_mb=2).max_file_size_bytes == 2 * 1024 * 1024

    def test_non_positive_size_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EngineConfig(max_file_size_mb=0)

    def test_unknown_new_line_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EngineConfig(default_new_line="cr")


class TestTsPlaneConfig:
    def test_sections_default(self) -> None:
        config = TsPlaneConfig()
        assert config.logging.level == "INFO"
        assert config.engine.max_file_size_mb == 10
