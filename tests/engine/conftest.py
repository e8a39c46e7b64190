"""Shared fixtures for engine tests."""

from __future__ import annotations

import pytest

from tsplane.engine.parser import SourceParser


@pytest.fixture
def parser() -> SourceParser:
    """Create a SourceParser instance."""
    return SourceParser()
