"""Rule evaluation: run every rule's selectors and predicate over a document."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Final

from oasguard.diagnostics import Diagnostic
from oasguard.document import Document, JsonPath, parse_document
from oasguard.rules.base import Failure, RuleDefinition, Target
from oasguard.ruleset import EffectiveRule, Ruleset
from oasguard.selector import Match

logger: logging.Logger = logging.getLogger(__name__)

_PLACEHOLDER_RE: Final[re.Pattern[str]] = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def render_message(rule: RuleDefinition, *, target: Target, failure: str) -> str:
    """Build the diagnostic message from the rule's template and a failure."""
    template: Any = rule.message
    if template is None:
        return failure
    if callable(template):
        return template(target, failure)

    values: dict[str, str] = {
        "error": failure,
        "description": rule.description,
        "path": ".".join(str(segment) for segment in target.path),
        "property": str(target.path[-1]) if target.path else "",
        "value": "" if isinstance(target.value, (dict, list)) else str(target.value),
    }
    return _PLACEHOLDER_RE.sub(
        lambda m: values.get(m.group(1), m.group(0)),
        template,
    )


def _evaluate_rule(
    rule: EffectiveRule,
    *,
    document: Document,
    source: Path | None,
) -> list[Diagnostic]:
    definition: RuleDefinition = rule.definition

    matches: dict[tuple[Any, ...], Match] = {}
    for selector in rule.selectors:
        for match in selector.select(document):
            if definition.accepts(match.value):
                matches.setdefault(match.path, match)
    ordered: list[Match] = sorted(
        matches.values(), key=lambda m: document.order_of(m.path),
    )

    diagnostics: list[Diagnostic] = []
    for match in ordered:
        target: Target = Target(value=match.value, path=match.path, document=document)
        for failure in definition.then(target):
            reported: Target = target
            text: str
            if isinstance(failure, Failure):
                path: JsonPath = (*match.path, *failure.path)
                reported = Target(value=document.get(path), path=path, document=document)
                text = failure.message
            else:
                text = failure
            diagnostics.append(
                Diagnostic(
                    code=definition.name,
                    message=render_message(definition, target=reported, failure=text),
                    path=reported.path,
                    range=document.range_for(reported.path),
                    severity=rule.severity,
                    source=source,
                ),
            )

    logger.debug(
        "%s: %d matches, %d diagnostics", definition.name, len(ordered), len(diagnostics),
    )
    return diagnostics


def evaluate_document(
    document: Document,
    *,
    ruleset: Ruleset,
    source: Path | None = None,
) -> list[Diagnostic]:
    """
    Evaluate every enabled rule against a parsed document.

    Diagnostics are ordered by rule table order, then document order.
    """
    diagnostics: list[Diagnostic] = []
    for rule in ruleset:
        if not rule.definition.applies_to(document.format):
            continue
        diagnostics.extend(_evaluate_rule(rule, document=document, source=source))
    return diagnostics


def evaluate(
    text: str,
    *,
    ruleset: Ruleset,
    source: Path | None = None,
) -> list[Diagnostic]:
    """
    Parse raw document text and evaluate it.

    Raises:
        DocumentParseError: If the text is not a well-formed document.
    """
    document: Document = parse_document(text)
    return evaluate_document(document, ruleset=ruleset, source=source)
