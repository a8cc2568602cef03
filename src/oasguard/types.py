"""Configuration types for oasguard."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from oasguard.constants import (
    DEFAULT_EXCLUDES,
    DEFAULT_INCLUDES,
    OutputFormat,
    Severity,
)


@dataclass(frozen=True, slots=True)
class OasGuardConfig:
    """Complete oasguard configuration."""

    config_path: Path | None = None
    include: tuple[str, ...] = DEFAULT_INCLUDES
    exclude: tuple[str, ...] = DEFAULT_EXCLUDES
    output_format: OutputFormat = OutputFormat.TEXT
    show_source: bool = True
    fail_severity: Severity = Severity.ERROR
    rules: MappingProxyType[str, Severity] = field(
        default_factory=lambda: MappingProxyType({})
    )


class ConfigError(Exception):
    """Error during configuration loading or validation."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        self.path: Path | None = path
        super().__init__(message)
