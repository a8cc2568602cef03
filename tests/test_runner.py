"""Tests for oasguard lint runner."""
from __future__ import annotations

import json
from pathlib import Path

from oasguard.constants import PARSE_ERROR_CODE, OutputFormat, Severity
from oasguard.rules.registry import build_ruleset
from oasguard.runner import LintResult, format_results, lint_paths
from oasguard.types import OasGuardConfig

_CLEAN: str = """\
openapi: 3.0.3
info:
  title: Clean
  version: 1.0.0
paths:
  /things:
    get:
      responses:
        '204':
          description: ok
"""

_UNSORTED_COLLECTION: str = """\
openapi: 3.0.3
info:
  title: Unsorted
  version: 1.0.0
paths:
  /things:
    get:
      responses:
        '200':
          description: ok
          content:
            application/json:
              example: []
              schema:
                type: array
                items:
                  type: string
"""


def _write_file(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


def _lint(tmp_path: Path, config: OasGuardConfig | None = None) -> LintResult:
    return lint_paths(
        paths=(tmp_path,),
        config=config or OasGuardConfig(),
        ruleset=build_ruleset(),
    )


class TestLintPaths:
    def test_clean_document(self, tmp_path: Path) -> None:
        _write_file(tmp_path / "api.yaml", _CLEAN)
        result: LintResult = _lint(tmp_path)
        assert result.files_checked == 1
        assert result.exit_code == 0
        assert len(result.diagnostics) == 0

    def test_warning_does_not_fail_by_default(self, tmp_path: Path) -> None:
        _write_file(tmp_path / "api.yaml", _UNSORTED_COLLECTION)
        result: LintResult = _lint(tmp_path)
        assert [d.code for d in result.diagnostics] == ["oas3-get-collection-sort-parameter"]
        assert result.exit_code == 0

    def test_fail_severity_warn(self, tmp_path: Path) -> None:
        _write_file(tmp_path / "api.yaml", _UNSORTED_COLLECTION)
        result: LintResult = _lint(tmp_path, OasGuardConfig(fail_severity=Severity.WARN))
        assert result.exit_code == 1

    def test_parse_error_becomes_diagnostic(self, tmp_path: Path) -> None:
        _write_file(tmp_path / "broken.yaml", "openapi: [3.0\n")
        result: LintResult = _lint(tmp_path)
        assert result.exit_code == 1
        diags = result.diagnostics.sorted
        assert len(diags) == 1
        assert diags[0].code == PARSE_ERROR_CODE
        assert diags[0].severity == Severity.ERROR
        assert diags[0].source == (tmp_path / "broken.yaml").resolve()

    def test_mixed_files(self, tmp_path: Path) -> None:
        _write_file(tmp_path / "a.yaml", _CLEAN)
        _write_file(tmp_path / "b.json", "{")
        _write_file(tmp_path / "c.yml", _UNSORTED_COLLECTION)
        result: LintResult = _lint(tmp_path)
        assert result.files_checked == 3
        assert result.diagnostics.error_count == 1
        assert result.diagnostics.warning_count == 1
        assert len(result.documents) == 2

    def test_non_oas_documents_are_skipped(self, tmp_path: Path) -> None:
        _write_file(tmp_path / "settings.yaml", "name: not an api\n")
        result: LintResult = _lint(tmp_path)
        assert result.files_checked == 1
        assert len(result.diagnostics) == 0

    def test_empty_directory(self, tmp_path: Path) -> None:
        result: LintResult = _lint(tmp_path)
        assert result.files_checked == 0
        assert result.exit_code == 0


class TestFormatResults:
    def test_text_summary(self, tmp_path: Path) -> None:
        _write_file(tmp_path / "api.yaml", _UNSORTED_COLLECTION)
        config: OasGuardConfig = OasGuardConfig(show_source=False)
        output: str = format_results(result=_lint(tmp_path, config), config=config)
        lines: list[str] = output.splitlines()
        assert lines[0].endswith("at paths./things.get")
        assert "WARN [oas3-get-collection-sort-parameter]" in lines[0]
        assert lines[-2] == "Found 1 warning."
        assert lines[-1] == "Checked 1 file."

    def test_text_clean(self, tmp_path: Path) -> None:
        _write_file(tmp_path / "a.yaml", _CLEAN)
        _write_file(tmp_path / "b.yaml", _CLEAN)
        output: str = format_results(result=_lint(tmp_path), config=OasGuardConfig())
        assert output == "No issues found.\nChecked 2 files."

    def test_json_has_no_summary(self, tmp_path: Path) -> None:
        _write_file(tmp_path / "api.yaml", _UNSORTED_COLLECTION)
        config: OasGuardConfig = OasGuardConfig(output_format=OutputFormat.JSON)
        output: str = format_results(result=_lint(tmp_path, config), config=config)
        data = json.loads(output)
        assert [item["code"] for item in data] == ["oas3-get-collection-sort-parameter"]
        assert data[0]["range"]["start"] == {"line": 6, "character": 8}
