"""Lint orchestrator for oasguard."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from oasguard.constants import PARSE_ERROR_CODE, OutputFormat, Severity
from oasguard.diagnostics import Diagnostic, DiagnosticCollection
from oasguard.document import Document, DocumentParseError, Position, Range, parse_document
from oasguard.engine import evaluate_document
from oasguard.formatters import Formatter, format_summary, get_formatter
from oasguard.ruleset import Ruleset
from oasguard.scanner import scan_files
from oasguard.types import OasGuardConfig

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LintResult:
    diagnostics: DiagnosticCollection
    files_checked: int
    exit_code: int
    documents: dict[Path, Document]


def _parse_error_to_diagnostic(*, file: Path, error: DocumentParseError) -> Diagnostic:
    position: Position = Position(error.line, error.character)
    return Diagnostic(
        code=PARSE_ERROR_CODE,
        message=str(error),
        path=(),
        range=Range(start=position, end=position),
        severity=Severity.ERROR,
        source=file,
    )


def _read_document(*, file: Path) -> Document:
    try:
        text: str = file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentParseError(f"Cannot read file: {e}") from e
    return parse_document(text)


def lint_paths(
    *,
    paths: tuple[Path, ...],
    config: OasGuardConfig,
    ruleset: Ruleset,
) -> LintResult:
    started: float = time.perf_counter()
    files: list[Path] = scan_files(paths=paths, config=config)
    logger.info("Found %d files", len(files))

    collection: DiagnosticCollection = DiagnosticCollection()
    documents: dict[Path, Document] = {}

    for file in files:
        logger.debug("Checking %s", file)
        try:
            document: Document = _read_document(file=file)
        except DocumentParseError as e:
            collection.add(diagnostic=_parse_error_to_diagnostic(file=file, error=e))
            continue

        documents[file] = document
        if document.format is None:
            logger.debug("%s is not an OpenAPI/Swagger document", file)

        file_diagnostics: list[Diagnostic] = evaluate_document(
            document, ruleset=ruleset, source=file,
        )
        logger.debug("%s: %d diagnostics", file, len(file_diagnostics))
        collection.add_all(diagnostics=file_diagnostics)

    logger.info("Completed in %.3fs", time.perf_counter() - started)
    exit_code: int = 1 if collection.has_failures(config.fail_severity) else 0
    return LintResult(
        diagnostics=collection,
        files_checked=len(files),
        exit_code=exit_code,
        documents=documents,
    )


def format_results(*, result: LintResult, config: OasGuardConfig) -> str:
    formatter: Formatter = get_formatter(output_format=config.output_format)
    output: str = formatter.format(
        diagnostics=result.diagnostics,
        documents=result.documents,
        config=config,
    )
    if config.output_format == OutputFormat.JSON:
        return output

    summary: str = format_summary(diagnostics=result.diagnostics)
    suffix: str = "s" if result.files_checked != 1 else ""
    file_count: str = f"Checked {result.files_checked} file{suffix}."

    parts: list[str] = []
    if output:
        parts.append(output)
    parts.append(summary)
    parts.append(file_count)

    return "\n".join(parts)
