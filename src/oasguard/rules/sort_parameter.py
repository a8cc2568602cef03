"""Collection GET operations should accept a ``sort`` query parameter."""
from __future__ import annotations

from typing import Any, Final

from oasguard.constants import GUIDELINES_URL, DocumentFormat, Severity
from oasguard.rules.base import RuleDefinition, Target
from oasguard.schema import effective_parameters

SORT_PARAMETER_MESSAGE: Final[str] = (
    'It is recommended to add a "sort" query parameter to sort this collection '
    f"({GUIDELINES_URL})"
)

MISSING_SORT: Final[str] = 'Collection has no "sort" query parameter'


def require_sort_parameter(target: Target) -> list[str]:
    """Pass when the operation (or its path item) declares ``sort`` in the query."""
    parameters: list[dict[str, Any]] = effective_parameters(target.document, target.path)
    for parameter in parameters:
        if parameter.get("name") == "sort" and parameter.get("in") == "query":
            return []
    return [MISSING_SORT]


SORT_PARAMETER_RULES: Final[tuple[RuleDefinition, ...]] = (
    RuleDefinition(
        name="oas2-get-collection-sort-parameter",
        given=(
            "$.paths[*][?(@property == 'get' && collection(@.responses['200'].schema))]",
        ),
        then=require_sort_parameter,
        severity=Severity.WARN,
        message=SORT_PARAMETER_MESSAGE,
        description="GET operations returning a collection should support sorting.",
        formats=frozenset({DocumentFormat.OAS2}),
        shape=dict,
    ),
    RuleDefinition(
        name="oas3-get-collection-sort-parameter",
        given=(
            "$.paths[*][?(@property == 'get'"
            " && collection(@.responses['200'].content.*.schema))]",
        ),
        then=require_sort_parameter,
        severity=Severity.WARN,
        message=SORT_PARAMETER_MESSAGE,
        description="GET operations returning a collection should support sorting.",
        formats=frozenset({DocumentFormat.OAS3}),
        shape=dict,
    ),
)
