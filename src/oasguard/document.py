"""Document model: YAML/JSON parsing with source ranges for oasguard."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any
from urllib.parse import unquote

import yaml

from oasguard.constants import DocumentFormat

JsonPathSegment = str | int
JsonPath = tuple[JsonPathSegment, ...]


@dataclass(frozen=True, slots=True)
class Position:
    """Source position. Both values are 0-based."""

    line: int
    character: int

    def to_dict(self) -> dict[str, int]:
        return {"line": self.line, "character": self.character}


@dataclass(frozen=True, slots=True)
class Range:
    """Source extent of a document node."""

    start: Position
    end: Position

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


class DocumentParseError(Exception):
    """Raised when source text cannot be turned into a document."""

    def __init__(self, message: str, *, line: int = 0, character: int = 0) -> None:
        self.line: int = line
        self.character: int = character
        super().__init__(message)


@dataclass(frozen=True, slots=True)
class Document:
    """A parsed API description with a structural path -> range table."""

    source: str
    data: Any
    ranges: MappingProxyType[JsonPath, Range]
    order: MappingProxyType[JsonPath, int]
    source_lines: tuple[str, ...] = field(default=())

    @property
    def format(self) -> DocumentFormat | None:
        """Detect Swagger 2.0 / OpenAPI 3.x from the root version field."""
        if not isinstance(self.data, dict):
            return None
        swagger: Any = self.data.get("swagger")
        if swagger is not None and str(swagger).startswith("2"):
            return DocumentFormat.OAS2
        openapi: Any = self.data.get("openapi")
        if openapi is not None and str(openapi).startswith("3"):
            return DocumentFormat.OAS3
        return None

    def get(self, path: JsonPath, default: Any = None) -> Any:
        """Return the value at ``path``, or ``default`` if it does not exist."""
        current: Any = self.data
        for segment in path:
            if isinstance(current, dict) and segment in current:
                current = current[segment]
            elif (
                isinstance(current, list)
                and isinstance(segment, int)
                and 0 <= segment < len(current)
            ):
                current = current[segment]
            else:
                return default
        return current

    def range_for(self, path: JsonPath) -> Range:
        """Return the range of ``path`` or of its closest existing ancestor."""
        for length in range(len(path), -1, -1):
            found: Range | None = self.ranges.get(path[:length])
            if found is not None:
                return found
        return Range(start=Position(0, 0), end=Position(0, 0))

    def order_of(self, path: JsonPath) -> int:
        """Pre-order traversal index of ``path`` (document order)."""
        return self.order.get(path, len(self.order))

    def source_line(self, line: int) -> str | None:
        if 0 <= line < len(self.source_lines):
            return self.source_lines[line]
        return None

    def resolve_pointer(self, ref: str) -> tuple[JsonPath, Any] | None:
        """Resolve a local JSON reference like ``#/components/schemas/Pet``."""
        if not ref.startswith("#"):
            return None
        pointer: str = unquote(ref[1:])
        if pointer in ("", "/"):
            return (), self.data
        if not pointer.startswith("/"):
            return None

        path: list[JsonPathSegment] = []
        current: Any = self.data
        for raw in pointer[1:].split("/"):
            token: str = raw.replace("~1", "/").replace("~0", "~")
            if isinstance(current, dict) and token in current:
                path.append(token)
                current = current[token]
            elif (
                isinstance(current, list)
                and token.isascii()
                and token.isdigit()
                and int(token) < len(current)
            ):
                path.append(int(token))
                current = current[int(token)]
            else:
                return None
        return tuple(path), current


class _Builder:
    """Walks a composed YAML node graph into plain data plus ranges."""

    def __init__(self, *, loader: yaml.SafeLoader) -> None:
        self._loader: yaml.SafeLoader = loader
        self._active: set[int] = set()
        self.ranges: dict[JsonPath, Range] = {}
        self.order: dict[JsonPath, int] = {}

    def build(
        self,
        node: yaml.Node,
        *,
        path: JsonPath,
        key_node: yaml.Node | None,
    ) -> Any:
        if id(node) in self._active:
            raise DocumentParseError(
                "Recursive alias is not supported",
                line=node.start_mark.line,
                character=node.start_mark.column,
            )

        self.order[path] = len(self.order)
        self.ranges[path] = Range(
            start=_start_of(node, key_node=key_node),
            end=_end_of(node),
        )

        if isinstance(node, yaml.MappingNode):
            self._active.add(id(node))
            mapping: dict[str, Any] = {}
            for child_key, child_value in node.value:
                key: str = _key_text(child_key)
                mapping[key] = self.build(
                    child_value, path=(*path, key), key_node=child_key,
                )
            self._active.discard(id(node))
            return mapping

        if isinstance(node, yaml.SequenceNode):
            self._active.add(id(node))
            items: list[Any] = [
                self.build(item, path=(*path, index), key_node=None)
                for index, item in enumerate(node.value)
            ]
            self._active.discard(id(node))
            return items

        return self._loader.construct_object(node, deep=True)


def _key_text(node: yaml.Node) -> str:
    if isinstance(node, yaml.ScalarNode):
        return str(node.value)
    raise DocumentParseError(
        "Only scalar mapping keys are supported",
        line=node.start_mark.line,
        character=node.start_mark.column,
    )


def _start_of(node: yaml.Node, *, key_node: yaml.Node | None) -> Position:
    # Collection values of a mapping entry start right after the key's colon.
    if key_node is not None and not isinstance(node, yaml.ScalarNode):
        return Position(key_node.end_mark.line, key_node.end_mark.column + 1)
    return Position(node.start_mark.line, node.start_mark.column)


def _end_of(node: yaml.Node) -> Position:
    if isinstance(node, yaml.CollectionNode) and not node.flow_style and node.value:
        last: yaml.Node
        if isinstance(node, yaml.MappingNode):
            last = node.value[-1][1]
        else:
            last = node.value[-1]
        return _end_of(last)
    return Position(node.end_mark.line, node.end_mark.column)


def parse_document(source: str) -> Document:
    """
    Parse YAML or JSON source text into a Document.

    Raises:
        DocumentParseError: If the text is malformed or its root is not a mapping.
    """
    text: str = source
    if source.lstrip().startswith("{"):
        # Raw tabs in JSON can only be whitespace, which the YAML scanner rejects.
        # One-for-one replacement keeps every column unchanged.
        text = source.replace("\t", " ")

    loader: yaml.SafeLoader = yaml.SafeLoader(text)
    try:
        root: yaml.Node | None = loader.get_single_node()
        if root is None:
            raise DocumentParseError("Document is empty")
        if not isinstance(root, yaml.MappingNode):
            raise DocumentParseError(
                "Document root must be a mapping",
                line=root.start_mark.line,
                character=root.start_mark.column,
            )
        builder: _Builder = _Builder(loader=loader)
        data: Any = builder.build(root, path=(), key_node=None)
    except yaml.MarkedYAMLError as e:
        mark: Any = e.problem_mark or e.context_mark
        raise DocumentParseError(
            str(e.problem or e.context or "Invalid YAML"),
            line=mark.line if mark is not None else 0,
            character=mark.column if mark is not None else 0,
        ) from e
    except yaml.YAMLError as e:
        raise DocumentParseError(f"Invalid YAML: {e}") from e
    finally:
        loader.dispose()

    return Document(
        source=source,
        data=data,
        ranges=MappingProxyType(builder.ranges),
        order=MappingProxyType(builder.order),
        source_lines=tuple(source.splitlines()),
    )
