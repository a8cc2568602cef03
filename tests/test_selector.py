"""Tests for the selector query language."""
from __future__ import annotations

import pytest

from oasguard.document import Document, JsonPath, parse_document
from oasguard.selector import SelectorError, compile_selector

_TEXT: str = """\
openapi: 3.0.3
info:
  title: Pets
  version: 1.0.0
paths:
  /pets:
    parameters:
      - name: limit
        in: query
    get:
      operationId: listPets
      responses:
        '200':
          description: ok
          content:
            application/json:
              schema:
                $ref: '#/components/schemas/Pets'
    post:
      operationId: createPet
      responses:
        '201':
          description: created
  /pets/{id}:
    get:
      operationId: getPet
      deprecated: true
      responses:
        '200':
          description: ok
          content:
            application/json:
              schema:
                $ref: '#/components/schemas/Pet'
components:
  schemas:
    Pet:
      type: object
      properties:
        id:
          type: integer
    Pets:
      type: array
      items:
        $ref: '#/components/schemas/Pet'
"""

DOCUMENT: Document = parse_document(_TEXT)


def _paths(query: str, document: Document = DOCUMENT) -> list[JsonPath]:
    return [match.path for match in compile_selector(query).select(document)]


class TestBasicSegments:
    def test_root(self) -> None:
        assert _paths("$") == [()]

    def test_dot_names(self) -> None:
        assert _paths("$.info.title") == [("info", "title")]

    def test_bracket_names(self) -> None:
        assert _paths("$['info']['title', 'version']") == [
            ("info", "title"),
            ("info", "version"),
        ]

    def test_wildcard(self) -> None:
        assert _paths("$.paths[*]") == [("paths", "/pets"), ("paths", "/pets/{id}")]
        assert _paths("$.paths.*") == _paths("$.paths[*]")

    def test_index(self) -> None:
        assert _paths("$.paths['/pets'].parameters[0].name") == [
            ("paths", "/pets", "parameters", 0, "name"),
        ]

    def test_negative_index(self) -> None:
        assert _paths("$.paths['/pets'].parameters[-1]") == [
            ("paths", "/pets", "parameters", 0),
        ]

    def test_missing_name_matches_nothing(self) -> None:
        assert _paths("$.nope.deeper") == []

    def test_recursive_descent(self) -> None:
        assert _paths("$..operationId") == [
            ("paths", "/pets", "get", "operationId"),
            ("paths", "/pets", "post", "operationId"),
            ("paths", "/pets/{id}", "get", "operationId"),
        ]

    def test_values_are_returned(self) -> None:
        matches = compile_selector("$.info.title").select(DOCUMENT)
        assert [m.value for m in matches] == ["Pets"]


class TestFilters:
    def test_property_filter(self) -> None:
        assert _paths("$.paths[*][?(@property == 'get')]") == [
            ("paths", "/pets", "get"),
            ("paths", "/pets/{id}", "get"),
        ]

    def test_property_disjunction(self) -> None:
        assert _paths("$.paths['/pets'][?(@property == 'get' || @property == 'post')]") == [
            ("paths", "/pets", "get"),
            ("paths", "/pets", "post"),
        ]

    def test_existence_filter(self) -> None:
        assert _paths("$.paths[*][*][?(@.deprecated)]") == []
        assert _paths("$.paths[*][?(@.deprecated)]") == [("paths", "/pets/{id}", "get")]

    def test_negation(self) -> None:
        assert _paths("$.paths[*][?(@property == 'get' && !@.deprecated)]") == [
            ("paths", "/pets", "get"),
        ]

    def test_not_equal(self) -> None:
        assert _paths("$.paths['/pets'][?(@property != 'parameters')]") == [
            ("paths", "/pets", "get"),
            ("paths", "/pets", "post"),
        ]

    def test_strict_equality(self) -> None:
        assert _paths("$.paths[*].get[?(@ === true)]") == [
            ("paths", "/pets/{id}", "get", "deprecated"),
        ]
        assert _paths("$.paths[*].get[?(@ !== true)]") != []

    def test_bool_is_not_number(self) -> None:
        assert _paths("$.paths[*].get[?(@ == 1)]") == []

    def test_relative_path_follows_refs(self) -> None:
        query: str = "$.paths[*].get.responses[?(@.content['application/json'].schema.type == 'array')]"
        assert _paths(query) == [("paths", "/pets", "get", "responses", "200")]

    def test_collection_function(self) -> None:
        query: str = "$.paths[*][?(@property == 'get' && collection(@.responses['200'].content.*.schema))]"
        assert _paths(query) == [("paths", "/pets", "get")]

    def test_array_function(self) -> None:
        assert _paths("$.components.schemas[?(array(@))]") == [
            ("components", "schemas", "Pets"),
        ]

    def test_parentheses(self) -> None:
        query: str = "$.paths[*][?((@property == 'get' || @property == 'post') && @.operationId == 'createPet')]"
        assert _paths(query) == [("paths", "/pets", "post")]

    def test_recursive_filter(self) -> None:
        assert _paths("$..[?(@.$ref == '#/components/schemas/Pet')]") == [
            ("paths", "/pets/{id}", "get", "responses", "200", "content", "application/json", "schema"),
            ("components", "schemas", "Pets", "items"),
        ]


class TestOrdering:
    def test_results_follow_document_order(self) -> None:
        assert _paths("$['paths', 'info']") == [("info",), ("paths",)]

    def test_results_are_deduplicated(self) -> None:
        assert _paths("$['info', 'info']") == [("info",)]

    def test_repeatable(self) -> None:
        query: str = "$..description"
        assert _paths(query) == _paths(query)


class TestCompileErrors:
    @pytest.mark.parametrize(
        "query",
        [
            "paths",
            "$.",
            "$[",
            "$['unterminated]",
            "$.paths[?(@property == 'get')",
            "$.paths[?(unknown(@))]",
            "$.paths[?(collection())]",
            "$.paths[?(collection(@, @))]",
            "$.paths[?(@..x)]",
            "$.paths[?(@[?(@.a)])]",
            "$.paths %",
        ],
    )
    def test_malformed(self, query: str) -> None:
        with pytest.raises(SelectorError):
            compile_selector(query)

    def test_error_carries_position(self) -> None:
        with pytest.raises(SelectorError) as exc_info:
            compile_selector("$.paths[?(nope(@))]")
        assert exc_info.value.query == "$.paths[?(nope(@))]"
        assert exc_info.value.position > 0

    def test_compiled_selectors_are_cached(self) -> None:
        assert compile_selector("$.info") is compile_selector("$.info")

    def test_selector_cache_is_bounded(self) -> None:
        assert compile_selector.cache_info().maxsize == 512
