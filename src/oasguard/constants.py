"""Constants and enums for oasguard."""
from __future__ import annotations

from enum import Enum
from typing import Final

__version__: Final[str] = "0.1.0"


class Severity(Enum):
    """Rule severity levels, most severe first."""

    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    HINT = "hint"
    OFF = "off"

    @property
    def rank(self) -> int:
        """Numeric rank used in the diagnostic wire format (0 = error)."""
        return _SEVERITY_RANKS[self]

    def at_least(self, other: Severity) -> bool:
        """Return True if this severity is as severe as ``other`` or more."""
        if self is Severity.OFF or other is Severity.OFF:
            return False
        return self.rank <= other.rank


_SEVERITY_RANKS: Final[dict[Severity, int]] = {
    Severity.ERROR: 0,
    Severity.WARN: 1,
    Severity.INFO: 2,
    Severity.HINT: 3,
    Severity.OFF: -1,
}


class OutputFormat(Enum):
    """Output format options."""

    TEXT = "text"
    JSON = "json"


class DocumentFormat(Enum):
    """API description formats a rule can target."""

    OAS2 = "oas2"
    OAS3 = "oas3"


PARSE_ERROR_CODE: Final[str] = "parser"

GUIDELINES_URL: Final[str] = (
    "https://developer.cisco.com/docs/api-insights/#!api-guidelines-analyzer"
)

DEFAULT_INCLUDES: Final[tuple[str, ...]] = (
    "**/*.yaml",
    "**/*.yml",
    "**/*.json",
)

DEFAULT_EXCLUDES: Final[tuple[str, ...]] = (
    "**/.*",
    "**/.git/**",
    "**/.venv/**",
    "**/venv/**",
    "**/node_modules/**",
    "build/**",
    "dist/**",
)

DOCUMENT_SUFFIXES: Final[frozenset[str]] = frozenset({".yaml", ".yml", ".json"})
