"""Configuration loading and validation for oasguard."""
from __future__ import annotations

import tomllib
from pathlib import Path
from types import MappingProxyType
from typing import Any

from oasguard.constants import (
    DEFAULT_EXCLUDES,
    DEFAULT_INCLUDES,
    OutputFormat,
    Severity,
)
from oasguard.rules.registry import known_rule_names
from oasguard.types import ConfigError, OasGuardConfig


class ConfigLoader:
    """Loads and validates oasguard configuration."""

    @staticmethod
    def find_config_file(start_path: Path | None = None) -> Path | None:
        """
        Find pyproject.toml by walking up from start_path.

        Args:
            start_path: Directory to start searching from. Defaults to cwd.

        Returns:
            Path to pyproject.toml if found, None otherwise.
        """
        if start_path is None:
            start_path = Path.cwd()

        start_path = start_path.resolve()

        for directory in [start_path, *start_path.parents]:
            config_path: Path = directory / "pyproject.toml"
            if config_path.is_file():
                return config_path

        return None

    @staticmethod
    def load(path: Path | None = None) -> OasGuardConfig:
        """
        Load configuration from the ``[tool.oasguard]`` table of pyproject.toml.

        Args:
            path: Explicit path to pyproject.toml. If None, searches upward.

        Returns:
            Validated OasGuardConfig instance.

        Raises:
            ConfigError: If configuration is invalid.
        """
        if path is None:
            path = ConfigLoader.find_config_file()

        if path is None:
            return OasGuardConfig()

        try:
            with open(path, "rb") as f:
                data: dict[str, Any] = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML: {e}", path=path) from e
        except OSError as e:
            raise ConfigError(f"Cannot read config file: {e}", path=path) from e

        tool_config: dict[str, Any] = data.get("tool", {}).get("oasguard", {})

        return ConfigLoader._parse_config(tool_config, config_path=path)

    @staticmethod
    def _parse_config(
        data: dict[str, Any],
        *,
        config_path: Path | None = None,
    ) -> OasGuardConfig:
        """Parse and validate configuration dictionary."""
        errors: list[str] = []

        include: tuple[str, ...] = DEFAULT_INCLUDES
        raw_include: Any = data.get("include", DEFAULT_INCLUDES)
        if isinstance(raw_include, list):
            include = tuple(raw_include)
        elif not isinstance(raw_include, tuple):
            errors.append(f"include must be a list, got {type(raw_include).__name__}")

        exclude: tuple[str, ...] = DEFAULT_EXCLUDES
        raw_exclude: Any = data.get("exclude", DEFAULT_EXCLUDES)
        if isinstance(raw_exclude, list):
            exclude = tuple(raw_exclude)
        elif not isinstance(raw_exclude, tuple):
            errors.append(f"exclude must be a list, got {type(raw_exclude).__name__}")

        output_format: OutputFormat = OutputFormat.TEXT
        if "output_format" in data:
            try:
                output_format = OutputFormat(data["output_format"])
            except ValueError:
                valid: list[str] = [f.value for f in OutputFormat]
                errors.append(f"output_format must be one of {valid}")

        show_source: bool = data.get("show_source", True)
        if not isinstance(show_source, bool):
            errors.append("show_source must be a boolean")
            show_source = True

        fail_severity: Severity = Severity.ERROR
        if "fail_severity" in data:
            try:
                fail_severity = Severity(str(data["fail_severity"]).lower())
            except ValueError:
                fail_severity = Severity.OFF
            if fail_severity is Severity.OFF:
                valid = [s.value for s in Severity if s is not Severity.OFF]
                errors.append(f"fail_severity must be one of {valid}")
                fail_severity = Severity.ERROR

        rules: dict[str, Severity] = ConfigLoader._parse_rules(
            data.get("rules", {}), errors,
        )

        if errors:
            error_msg: str = "Configuration errors:\n" + "\n".join(
                f"  - {e}" for e in errors
            )
            raise ConfigError(error_msg, path=config_path)

        return OasGuardConfig(
            config_path=config_path,
            include=include,
            exclude=exclude,
            output_format=output_format,
            show_source=show_source,
            fail_severity=fail_severity,
            rules=MappingProxyType(rules),
        )

    @staticmethod
    def _parse_rules(data: Any, errors: list[str]) -> dict[str, Severity]:
        """Parse per-rule severity overrides."""
        if not isinstance(data, dict):
            errors.append("rules must be a table")
            return {}

        known: frozenset[str] = known_rule_names()
        severities: dict[str, Severity] = {}
        for name, value in data.items():
            if name not in known:
                errors.append(f"rules.{name} is not a known rule")
                continue

            raw: Any = value.get("severity") if isinstance(value, dict) else value
            if isinstance(raw, bool):
                raw = "error" if raw else "off"
            try:
                severities[name] = Severity(str(raw).lower())
            except ValueError:
                valid: list[str] = [s.value for s in Severity]
                errors.append(f"rules.{name} must be one of {valid}")

        return severities


def load_config(path: Path | None = None) -> OasGuardConfig:
    """
    Convenience function to load configuration.

    Args:
        path: Optional explicit path to pyproject.toml.

    Returns:
        Validated configuration.
    """
    return ConfigLoader.load(path)
