"""Output formatters for oasguard diagnostics."""
from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from oasguard.constants import OutputFormat
from oasguard.diagnostics import DiagnosticCollection
from oasguard.document import Document
from oasguard.types import OasGuardConfig


class Formatter(Protocol):
    def format(
        self,
        *,
        diagnostics: DiagnosticCollection,
        documents: Mapping[Path, Document],
        config: OasGuardConfig,
    ) -> str: ...


def _dotted(path: tuple[Any, ...]) -> str:
    return ".".join(str(segment) for segment in path)


class TextFormatter:
    def format(
        self,
        *,
        diagnostics: DiagnosticCollection,
        documents: Mapping[Path, Document],
        config: OasGuardConfig,
    ) -> str:
        lines: list[str] = []

        for diag in diagnostics.sorted:
            severity_str: str = diag.severity.value.upper()
            # Humans read 1-based positions.
            line: str = (
                f"{diag.source or '<input>'}:"
                f"{diag.range.start.line + 1}:{diag.range.start.character + 1}: "
                f"{severity_str} [{diag.code}] {diag.message}"
            )
            if diag.path:
                line += f" at {_dotted(diag.path)}"
            lines.append(line)

            document: Document | None = (
                documents.get(diag.source) if diag.source is not None else None
            )
            if config.show_source and document is not None:
                source_line: str | None = document.source_line(diag.range.start.line)
                if source_line is not None:
                    lines.append(f"    {source_line}")
                    lines.append(f"    {' ' * diag.range.start.character}^")
                    lines.append("")

        return "\n".join(lines)


class JsonFormatter:
    def format(
        self,
        *,
        diagnostics: DiagnosticCollection,
        documents: Mapping[Path, Document],
        config: OasGuardConfig,
    ) -> str:
        items: list[dict[str, Any]] = []

        for diag in diagnostics.sorted:
            item: dict[str, Any] = diag.to_dict()
            item["source"] = str(diag.source) if diag.source is not None else None
            items.append(item)

        return json.dumps(items, indent=2)


def get_formatter(*, output_format: OutputFormat) -> Formatter:
    if output_format == OutputFormat.JSON:
        return JsonFormatter()
    return TextFormatter()


def format_summary(*, diagnostics: DiagnosticCollection) -> str:
    error_count: int = diagnostics.error_count
    warning_count: int = diagnostics.warning_count
    other_count: int = len(diagnostics) - error_count - warning_count

    parts: list[str] = []
    if error_count > 0:
        parts.append(f"{error_count} error{'s' if error_count != 1 else ''}")
    if warning_count > 0:
        parts.append(f"{warning_count} warning{'s' if warning_count != 1 else ''}")
    if other_count > 0:
        parts.append(f"{other_count} note{'s' if other_count != 1 else ''}")

    if not parts:
        return "No issues found."

    return f"Found {', '.join(parts)}."
