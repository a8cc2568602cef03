"""JSONPath-style selector engine for oasguard."""
from __future__ import annotations

import functools
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, Final

from oasguard.document import Document, JsonPath, JsonPathSegment
from oasguard.schema import deref, is_array_schema, is_collection_schema


class SelectorError(Exception):
    """A selector query could not be compiled."""

    def __init__(self, message: str, *, query: str, position: int) -> None:
        self.query: str = query
        self.position: int = position
        super().__init__(f"{message} at position {position} in {query!r}")


@dataclass(frozen=True, slots=True)
class Match:
    """A node selected by a query."""

    path: JsonPath
    value: Any


def _collection(document: Document, values: list[Any]) -> bool:
    return any(is_collection_schema(document, value) for value in values)


def _array(document: Document, values: list[Any]) -> bool:
    return any(is_array_schema(document, value) for value in values)


FILTER_FUNCTIONS: Final[dict[str, Callable[[Document, list[Any]], Any]]] = {
    "collection": _collection,
    "array": _array,
}


# Segment kinds shared by query steps and relative filter paths.
_NAMES: Final[str] = "names"
_WILDCARD: Final[str] = "wildcard"
_FILTER: Final[str] = "filter"

_NAME_RE: Final[re.Pattern[str]] = re.compile(r"[A-Za-z0-9_$\-]+")
_NUMBER_RE: Final[re.Pattern[str]] = re.compile(r"-?\d+(\.\d+)?")
_INDEX_RE: Final[re.Pattern[str]] = re.compile(r"-?\d+")


@dataclass(frozen=True, slots=True)
class _Segment:
    kind: str
    names: tuple[JsonPathSegment, ...] = ()
    predicate: _Expr | None = None
    recursive: bool = False


@dataclass(frozen=True, slots=True)
class _Scope:
    """Evaluation scope of a filter: the candidate child and its key."""

    document: Document
    value: Any
    key: JsonPathSegment


class _Expr:
    def evaluate(self, scope: _Scope) -> list[Any]:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class _Literal(_Expr):
    value: Any

    def evaluate(self, scope: _Scope) -> list[Any]:
        return [self.value]


@dataclass(frozen=True, slots=True)
class _Property(_Expr):
    def evaluate(self, scope: _Scope) -> list[Any]:
        return [scope.key]


@dataclass(frozen=True, slots=True)
class _Relative(_Expr):
    segments: tuple[_Segment, ...]

    def evaluate(self, scope: _Scope) -> list[Any]:
        values: list[Any] = [scope.value]
        for segment in self.segments:
            stepped: list[Any] = []
            for value in values:
                # Stepping into "$ref" reads the reference itself.
                resolved: Any = (
                    value if segment.names == ("$ref",) else deref(scope.document, value)
                )
                stepped.extend(child for _, child in _children(segment, resolved))
            values = stepped
        return values


@dataclass(frozen=True, slots=True)
class _Call(_Expr):
    name: str
    args: tuple[_Expr, ...]

    def evaluate(self, scope: _Scope) -> list[Any]:
        fn: Callable[..., Any] = FILTER_FUNCTIONS[self.name]
        return [fn(scope.document, *(arg.evaluate(scope) for arg in self.args))]


@dataclass(frozen=True, slots=True)
class _Compare(_Expr):
    negate: bool
    left: _Expr
    right: _Expr

    def evaluate(self, scope: _Scope) -> list[Any]:
        lefts: list[Any] = self.left.evaluate(scope)
        rights: list[Any] = self.right.evaluate(scope)
        equal: bool = any(_equals(a, b) for a in lefts for b in rights)
        return [equal != self.negate]


@dataclass(frozen=True, slots=True)
class _Not(_Expr):
    operand: _Expr

    def evaluate(self, scope: _Scope) -> list[Any]:
        return [not _truthy(self.operand.evaluate(scope))]


@dataclass(frozen=True, slots=True)
class _Logical(_Expr):
    conjunction: bool
    operands: tuple[_Expr, ...]

    def evaluate(self, scope: _Scope) -> list[Any]:
        results: Iterator[bool] = (_truthy(op.evaluate(scope)) for op in self.operands)
        return [all(results) if self.conjunction else any(results)]


def _truthy(values: list[Any]) -> bool:
    return any(v is not None and v is not False for v in values)


def _equals(left: Any, right: Any) -> bool:
    # bool is an int subclass; keep true != 1.
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def _children(segment: _Segment, value: Any) -> Iterator[tuple[JsonPathSegment, Any]]:
    if segment.kind == _NAMES:
        for name in segment.names:
            if isinstance(value, dict):
                key: str = str(name)
                if key in value:
                    yield key, value[key]
            elif isinstance(value, list) and isinstance(name, int):
                index: int = name if name >= 0 else len(value) + name
                if 0 <= index < len(value):
                    yield index, value[index]
        return

    if isinstance(value, dict):
        items: Iterator[tuple[JsonPathSegment, Any]] = iter(value.items())
    elif isinstance(value, list):
        items = iter(enumerate(value))
    else:
        return

    for key, child in items:
        if segment.kind == _WILDCARD:
            yield key, child


def _descendants(path: JsonPath, value: Any) -> Iterator[tuple[JsonPath, Any]]:
    yield path, value
    if isinstance(value, dict):
        for key, child in value.items():
            yield from _descendants((*path, key), child)
    elif isinstance(value, list):
        for index, child in enumerate(value):
            yield from _descendants((*path, index), child)


class Selector:
    """A compiled query. Use :func:`compile_selector` to build one."""

    def __init__(self, *, query: str, segments: tuple[_Segment, ...]) -> None:
        self.query: str = query
        self._segments: tuple[_Segment, ...] = segments

    def __repr__(self) -> str:
        return f"Selector({self.query!r})"

    def select(self, document: Document) -> list[Match]:
        """Return matched nodes, de-duplicated, in document order."""
        current: list[tuple[JsonPath, Any]] = [((), document.data)]
        for segment in self._segments:
            selected: list[tuple[JsonPath, Any]] = []
            for path, value in current:
                sources: Iterator[tuple[JsonPath, Any]] = (
                    _descendants(path, value) if segment.recursive else iter([(path, value)])
                )
                for source_path, source_value in sources:
                    selected.extend(
                        _step(segment, source_path, source_value, document),
                    )
            current = selected

        unique: dict[JsonPath, Any] = {}
        for path, value in current:
            unique.setdefault(path, value)
        return [
            Match(path=path, value=value)
            for path, value in sorted(unique.items(), key=lambda item: document.order_of(item[0]))
        ]


def _step(
    segment: _Segment,
    path: JsonPath,
    value: Any,
    document: Document,
) -> Iterator[tuple[JsonPath, Any]]:
    if segment.kind != _FILTER:
        for key, child in _children(segment, value):
            yield (*path, key), child
        return

    assert segment.predicate is not None
    wildcard: _Segment = _Segment(kind=_WILDCARD)
    for key, child in _children(wildcard, value):
        scope: _Scope = _Scope(document=document, value=child, key=key)
        if _truthy(segment.predicate.evaluate(scope)):
            yield (*path, key), child


class _Parser:
    """Recursive-descent parser for selector queries."""

    def __init__(self, query: str) -> None:
        self._query: str = query
        self._pos: int = 0

    def error(self, message: str) -> SelectorError:
        return SelectorError(message, query=self._query, position=self._pos)

    def parse(self) -> tuple[_Segment, ...]:
        self._skip_ws()
        if not self._consume("$"):
            raise self.error("Query must start with '$'")

        segments: list[_Segment] = []
        while True:
            self._skip_ws()
            if self._at_end():
                return tuple(segments)
            if self._consume(".."):
                segments.append(self._recursive_segment())
            elif self._consume("."):
                segments.append(self._dot_segment())
            elif self._peek() == "[":
                segments.append(self._bracket_segment(allow_filter=True))
            else:
                raise self.error(f"Unexpected character {self._peek()!r}")

    def _recursive_segment(self) -> _Segment:
        if self._peek() == "[":
            inner: _Segment = self._bracket_segment(allow_filter=True)
        else:
            inner = self._dot_segment()
        return _Segment(
            kind=inner.kind,
            names=inner.names,
            predicate=inner.predicate,
            recursive=True,
        )

    def _dot_segment(self) -> _Segment:
        if self._consume("*"):
            return _Segment(kind=_WILDCARD)
        return _Segment(kind=_NAMES, names=(self._name(),))

    def _bracket_segment(self, *, allow_filter: bool) -> _Segment:
        self._expect("[")
        self._skip_ws()
        segment: _Segment
        if self._consume("*"):
            segment = _Segment(kind=_WILDCARD)
        elif self._peek() == "?":
            if not allow_filter:
                raise self.error("Filters are not allowed inside filters")
            self._expect("?")
            self._skip_ws()
            self._expect("(")
            predicate: _Expr = self._or_expr()
            self._skip_ws()
            self._expect(")")
            segment = _Segment(kind=_FILTER, predicate=predicate)
        else:
            names: list[JsonPathSegment] = [self._key()]
            self._skip_ws()
            while self._consume(","):
                self._skip_ws()
                names.append(self._key())
                self._skip_ws()
            segment = _Segment(kind=_NAMES, names=tuple(names))
        self._skip_ws()
        self._expect("]")
        return segment

    def _key(self) -> JsonPathSegment:
        if self._peek() in ("'", '"'):
            return self._string()
        match: re.Match[str] | None = _INDEX_RE.match(self._query, self._pos)
        if match is None:
            raise self.error("Expected a quoted key or an integer index")
        self._pos = match.end()
        return int(match.group())

    def _or_expr(self) -> _Expr:
        operands: list[_Expr] = [self._and_expr()]
        while True:
            self._skip_ws()
            if not self._consume("||"):
                break
            operands.append(self._and_expr())
        if len(operands) == 1:
            return operands[0]
        return _Logical(conjunction=False, operands=tuple(operands))

    def _and_expr(self) -> _Expr:
        operands: list[_Expr] = [self._unary()]
        while True:
            self._skip_ws()
            if not self._consume("&&"):
                break
            operands.append(self._unary())
        if len(operands) == 1:
            return operands[0]
        return _Logical(conjunction=True, operands=tuple(operands))

    def _unary(self) -> _Expr:
        self._skip_ws()
        if self._peek() == "!" and not self._query.startswith("!=", self._pos):
            self._pos += 1
            return _Not(operand=self._unary())
        return self._comparison()

    def _comparison(self) -> _Expr:
        left: _Expr = self._primary()
        self._skip_ws()
        for operator, negate in (("===", False), ("!==", True), ("==", False), ("!=", True)):
            if self._consume(operator):
                right: _Expr = self._primary()
                return _Compare(negate=negate, left=left, right=right)
        return left

    def _primary(self) -> _Expr:
        self._skip_ws()
        char: str = self._peek()
        if char == "(":
            self._pos += 1
            inner: _Expr = self._or_expr()
            self._skip_ws()
            self._expect(")")
            return inner
        if char == "@":
            self._pos += 1
            if self._query.startswith("property", self._pos):
                end: int = self._pos + len("property")
                if end >= len(self._query) or not _NAME_RE.match(self._query[end]):
                    self._pos = end
                    return _Property()
            return _Relative(segments=self._relative_segments())
        if char in ("'", '"'):
            return _Literal(self._string())

        number: re.Match[str] | None = _NUMBER_RE.match(self._query, self._pos)
        if number is not None:
            self._pos = number.end()
            text: str = number.group()
            return _Literal(float(text) if "." in text else int(text))

        name: str = self._name()
        if name in ("true", "false", "null"):
            return _Literal({"true": True, "false": False, "null": None}[name])
        if name not in FILTER_FUNCTIONS:
            raise self.error(f"Unknown filter function {name!r}")
        self._skip_ws()
        self._expect("(")
        args: list[_Expr] = []
        self._skip_ws()
        if not self._consume(")"):
            args.append(self._or_expr())
            self._skip_ws()
            while self._consume(","):
                args.append(self._or_expr())
                self._skip_ws()
            self._expect(")")
        if len(args) != 1:
            raise self.error(f"Filter function {name!r} takes exactly one argument")
        return _Call(name=name, args=tuple(args))

    def _relative_segments(self) -> tuple[_Segment, ...]:
        segments: list[_Segment] = []
        while True:
            if self._query.startswith("..", self._pos):
                raise self.error("Recursive descent is not supported in filters")
            if self._consume("."):
                segments.append(self._dot_segment())
            elif self._peek() == "[":
                segments.append(self._bracket_segment(allow_filter=False))
            else:
                return tuple(segments)

    def _name(self) -> str:
        match: re.Match[str] | None = _NAME_RE.match(self._query, self._pos)
        if match is None:
            raise self.error("Expected a name")
        self._pos = match.end()
        return match.group()

    def _string(self) -> str:
        quote: str = self._peek()
        self._pos += 1
        chars: list[str] = []
        while not self._at_end():
            char: str = self._query[self._pos]
            self._pos += 1
            if char == "\\" and not self._at_end():
                chars.append(self._query[self._pos])
                self._pos += 1
            elif char == quote:
                return "".join(chars)
            else:
                chars.append(char)
        raise self.error("Unterminated string")

    def _skip_ws(self) -> None:
        while not self._at_end() and self._query[self._pos].isspace():
            self._pos += 1

    def _at_end(self) -> bool:
        return self._pos >= len(self._query)

    def _peek(self) -> str:
        return "" if self._at_end() else self._query[self._pos]

    def _consume(self, text: str) -> bool:
        if self._query.startswith(text, self._pos):
            self._pos += len(text)
            return True
        return False

    def _expect(self, text: str) -> None:
        if not self._consume(text):
            raise self.error(f"Expected {text!r}")


@functools.lru_cache(maxsize=512)
def compile_selector(query: str) -> Selector:
    """
    Compile a query such as ``$.paths[*][?(@property == 'patch')]``.

    Raises:
        SelectorError: If the query is malformed or uses an unknown function.
    """
    segments: tuple[_Segment, ...] = _Parser(query).parse()
    return Selector(query=query, segments=segments)
