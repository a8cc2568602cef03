"""Tests for the document model: parsing, ranges and references."""
from __future__ import annotations

import pytest

from oasguard.constants import DocumentFormat
from oasguard.document import (
    Document,
    DocumentParseError,
    Position,
    Range,
    parse_document,
)


def _range(start: tuple[int, int], end: tuple[int, int]) -> Range:
    return Range(start=Position(*start), end=Position(*end))


class TestParsing:
    def test_yaml_mapping(self) -> None:
        document: Document = parse_document("a: 1\nb:\n  c: true\n")
        assert document.data == {"a": 1, "b": {"c": True}}

    def test_json_text(self) -> None:
        document: Document = parse_document('{"a": [1, "two", null]}')
        assert document.data == {"a": [1, "two", None]}

    def test_json_with_tab_indentation(self) -> None:
        text: str = '{\n\t"openapi": "3.0.3",\n\t"info": {\n\t\t"title": "t"\n\t}\n}\n'
        document: Document = parse_document(text)
        assert document.data == {"openapi": "3.0.3", "info": {"title": "t"}}
        assert document.range_for(("info", "title")).start == Position(3, 11)
        assert document.source_line(1) == '\t"openapi": "3.0.3",'

    def test_numeric_keys_are_strings(self) -> None:
        document: Document = parse_document("responses:\n  200:\n    description: ok\n")
        assert list(document.data["responses"]) == ["200"]

    def test_anchor_and_alias(self) -> None:
        document: Document = parse_document("a: &x {b: 1}\nc: *x\n")
        assert document.data["c"] == {"b": 1}

    def test_source_lines(self) -> None:
        document: Document = parse_document("a: 1\nb: 2\n")
        assert document.source_line(1) == "b: 2"
        assert document.source_line(5) is None


class TestParseErrors:
    def test_empty_document(self) -> None:
        with pytest.raises(DocumentParseError, match="empty"):
            parse_document("")

    def test_root_must_be_mapping(self) -> None:
        with pytest.raises(DocumentParseError, match="mapping") as exc_info:
            parse_document("- a\n- b\n")
        assert exc_info.value.line == 0
        assert exc_info.value.character == 0

    def test_unclosed_flow_sequence(self) -> None:
        with pytest.raises(DocumentParseError):
            parse_document("a: [1, 2\n")

    def test_error_position_is_reported(self) -> None:
        with pytest.raises(DocumentParseError) as exc_info:
            parse_document("a: 1\nb: [\n")
        assert exc_info.value.line >= 1

    def test_multiple_documents_rejected(self) -> None:
        with pytest.raises(DocumentParseError):
            parse_document("a: 1\n---\nb: 2\n")


class TestRanges:
    def test_flow_mapping_ranges(self) -> None:
        document: Document = parse_document('{"a": {"b": 1}}')
        assert document.range_for(()) == _range((0, 0), (0, 15))
        assert document.range_for(("a",)) == _range((0, 5), (0, 14))
        assert document.range_for(("a", "b")) == _range((0, 12), (0, 13))

    def test_block_sequence_ranges(self) -> None:
        document: Document = parse_document("tags:\n  - a\n  - b\n")
        assert document.range_for(("tags",)) == _range((0, 5), (2, 5))
        assert document.range_for(("tags", 1)) == _range((2, 4), (2, 5))

    def test_block_mapping_ends_at_last_scalar(self) -> None:
        text: str = "paths:\n  /a:\n    get:\n      operationId: x\n\nother: 1\n"
        document: Document = parse_document(text)
        assert document.range_for(("paths", "/a", "get")) == _range((2, 8), (3, 20))

    def test_missing_path_uses_closest_ancestor(self) -> None:
        document: Document = parse_document("a:\n  b: 1\n")
        assert document.range_for(("a", "missing", "deeper")) == document.range_for(("a",))

    def test_order_is_document_preorder(self) -> None:
        document: Document = parse_document("b:\n  x: 1\na: 2\n")
        assert document.order_of(()) < document.order_of(("b",))
        assert document.order_of(("b",)) < document.order_of(("b", "x"))
        assert document.order_of(("b", "x")) < document.order_of(("a",))


class TestFormat:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ('swagger: "2.0"\n', DocumentFormat.OAS2),
            ("swagger: 2.0\n", DocumentFormat.OAS2),
            ("openapi: 3.0.3\n", DocumentFormat.OAS3),
            ("openapi: 3.1.0\n", DocumentFormat.OAS3),
            ("openapi: 3.0\n", DocumentFormat.OAS3),
            ("openapi: 3.1\n", DocumentFormat.OAS3),
            ("asyncapi: 2.0.0\n", None),
            ("openapi: 2.0\n", None),
        ],
    )
    def test_detection(self, text: str, expected: DocumentFormat | None) -> None:
        assert parse_document(text).format == expected


class TestReferences:
    _TEXT: str = (
        "components:\n"
        "  schemas:\n"
        "    Pet:\n"
        "      type: object\n"
        "paths:\n"
        "  /a/b:\n"
        "    get: {}\n"
        "list:\n"
        "  - x\n"
        "  - y\n"
    )

    def test_local_pointer(self) -> None:
        document: Document = parse_document(self._TEXT)
        assert document.resolve_pointer("#/components/schemas/Pet") == (
            ("components", "schemas", "Pet"),
            {"type": "object"},
        )

    def test_escaped_pointer(self) -> None:
        document: Document = parse_document(self._TEXT)
        resolved = document.resolve_pointer("#/paths/~1a~1b/get")
        assert resolved == (("paths", "/a/b", "get"), {})

    def test_list_index(self) -> None:
        document: Document = parse_document(self._TEXT)
        assert document.resolve_pointer("#/list/1") == (("list", 1), "y")

    def test_root_pointer(self) -> None:
        document: Document = parse_document(self._TEXT)
        assert document.resolve_pointer("#") == ((), document.data)

    @pytest.mark.parametrize(
        "ref",
        [
            "other.yaml#/components",
            "#/components/schemas/Missing",
            "#/list/7",
            "#/list/\u00b2",
            "#nope",
        ],
    )
    def test_unresolvable(self, ref: str) -> None:
        assert parse_document(self._TEXT).resolve_pointer(ref) is None
