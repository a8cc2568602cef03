"""Pytest fixtures for oasguard tests."""
from __future__ import annotations

from pathlib import Path

import pytest

@pytest.fixture
def resources() -> Path:
    """Directory of per-rule document fixtures."""
    return Path(__file__).parent / "resources"


@pytest.fixture
def temp_pyproject(tmp_path: Path) -> Path:
    """Create a temporary pyproject.toml file."""
    config_path: Path = tmp_path / "pyproject.toml"
    config_path.write_text(
        """
[tool.oasguard]
include = ["specs/**/*.yaml"]
exclude = ["**/draft-*.yaml"]
output_format = "json"
show_source = false
fail_severity = "warn"

[tool.oasguard.rules]
"info-contact" = "warn"
"oas3-examples-required" = "off"

[tool.oasguard.rules."patch-200-204-success"]
severity = "warn"
"""
    )
    return config_path


@pytest.fixture
def empty_pyproject(tmp_path: Path) -> Path:
    """Create a pyproject.toml without [tool.oasguard] section."""
    config_path: Path = tmp_path / "pyproject.toml"
    config_path.write_text(
        """
[project]
name = "test-project"
version = "0.1.0"
"""
    )
    return config_path


@pytest.fixture
def invalid_toml(tmp_path: Path) -> Path:
    """Create an invalid TOML file."""
    config_path: Path = tmp_path / "pyproject.toml"
    config_path.write_text("invalid [ toml content")
    return config_path


@pytest.fixture
def invalid_config(tmp_path: Path) -> Path:
    """Create a pyproject.toml with invalid oasguard config."""
    config_path: Path = tmp_path / "pyproject.toml"
    config_path.write_text(
        """
[tool.oasguard]
output_format = "invalid_format"
fail_severity = "off"

[tool.oasguard.rules]
"patch-200-204-success" = "super_error"
"no-such-rule" = "warn"
"""
    )
    return config_path
