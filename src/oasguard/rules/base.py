"""Rule definitions for oasguard guideline checks."""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from oasguard.constants import DocumentFormat, Severity
from oasguard.document import Document, JsonPath
from oasguard.schema import deref


@dataclass(frozen=True, slots=True)
class Target:
    """A matched node handed to a predicate, with read-only document access."""

    value: Any
    path: JsonPath
    document: Document

    def ancestor(self, levels: int = 1) -> Any:
        """Return the value ``levels`` steps above this node, or None at the root."""
        if levels > len(self.path):
            return None
        return self.document.get(self.path[: len(self.path) - levels])

    def resolve(self, value: Any) -> Any:
        """Follow local ``$ref`` chains from this document."""
        return deref(self.document, value)


@dataclass(frozen=True, slots=True)
class Failure:
    """A failure reported at ``path`` below the matched node."""

    message: str
    path: JsonPath = ()


Predicate = Callable[[Target], list[str] | list[Failure]]
MessageTemplate = str | Callable[[Target, str], str] | None


@dataclass(frozen=True, slots=True)
class RuleDefinition:
    """
    One guideline: which nodes to select and how to judge them.

    ``then`` returns a list of failure descriptions; an empty list means
    the node passes. A ``Failure`` moves its diagnostic to a descendant. ``message`` may reference ``{{error}}``,
    ``{{description}}``, ``{{path}}``, ``{{property}}`` and ``{{value}}``.
    """

    name: str
    given: tuple[str, ...]
    then: Predicate
    severity: Severity = Severity.WARN
    message: MessageTemplate = None
    description: str = ""
    formats: frozenset[DocumentFormat] = frozenset()
    shape: type | tuple[type, ...] | None = None
    recommended: bool = True

    def applies_to(self, document_format: DocumentFormat | None) -> bool:
        """Rules without formats apply to every document."""
        if not self.formats:
            return True
        return document_format in self.formats

    def accepts(self, value: Any) -> bool:
        """Check the matched value has the shape the predicate expects."""
        if self.shape is None:
            return True
        return isinstance(value, self.shape)
