"""Diagnostic data model for oasguard."""
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from oasguard.constants import Severity
from oasguard.document import JsonPath, Range


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A single guideline violation found in a document."""

    code: str
    message: str
    path: JsonPath
    range: Range
    severity: Severity
    source: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        """Stable output shape; severity is the numeric rank (0 = error)."""
        return {
            "code": self.code,
            "message": self.message,
            "path": list(self.path),
            "range": self.range.to_dict(),
            "severity": self.severity.rank,
        }


@dataclass(slots=True)
class DiagnosticCollection:
    """Mutable collection of diagnostics across files with sorting and counting."""

    _diagnostics: list[Diagnostic] = field(default_factory=list)

    def add(self, *, diagnostic: Diagnostic) -> None:
        """Add a single diagnostic."""
        self._diagnostics.append(diagnostic)

    def add_all(self, *, diagnostics: list[Diagnostic]) -> None:
        """Add multiple diagnostics."""
        self._diagnostics.extend(diagnostics)

    @property
    def sorted(self) -> list[Diagnostic]:
        """Return diagnostics sorted by file, line, character; ties keep insertion order."""
        return sorted(
            self._diagnostics,
            key=lambda d: (
                str(d.source or ""),
                d.range.start.line,
                d.range.start.character,
            ),
        )

    def count(self, severity: Severity) -> int:
        return sum(1 for d in self._diagnostics if d.severity == severity)

    @property
    def error_count(self) -> int:
        """Count of ERROR severity diagnostics."""
        return self.count(Severity.ERROR)

    @property
    def warning_count(self) -> int:
        """Count of WARN severity diagnostics."""
        return self.count(Severity.WARN)

    def has_failures(self, threshold: Severity) -> bool:
        """Return True if any diagnostic is at least as severe as ``threshold``."""
        return any(d.severity.at_least(threshold) for d in self._diagnostics)

    def __len__(self) -> int:
        return len(self._diagnostics)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._diagnostics)
