"""Example presence: request and response bodies should carry examples."""
from __future__ import annotations

from typing import Any, Final

from oasguard.constants import DocumentFormat
from oasguard.rules.base import RuleDefinition, Target
from oasguard.rules.oas import OPERATIONS

MISSING_EXAMPLE: Final[str] = "example or examples is missing in the object"


def ensure_examples(target: Target) -> list[str]:
    """
    Fail a schema-bearing object that has no example anywhere.

    Accepted locations are an inline ``example``, a sibling ``examples``
    map, or ``schema.example``. Non-object targets always pass.
    """
    if not isinstance(target.value, dict):
        return []

    value: dict[str, Any] = target.value
    if "example" in value or "examples" in value:
        return []

    schema: Any = target.resolve(value.get("schema"))
    if isinstance(schema, dict) and "example" in schema:
        return []

    return [MISSING_EXAMPLE]


EXAMPLE_RULES: Final[tuple[RuleDefinition, ...]] = (
    RuleDefinition(
        name="oas2-examples-required",
        given=(f"{OPERATIONS}.responses[?(@.schema)]",),
        then=ensure_examples,
        description="Responses with a body should provide examples.",
        formats=frozenset({DocumentFormat.OAS2}),
        shape=dict,
    ),
    RuleDefinition(
        name="oas3-examples-required",
        given=(
            f"{OPERATIONS}.requestBody.content[*]",
            f"{OPERATIONS}.responses[*].content[*]",
        ),
        then=ensure_examples,
        description="Request and response media types should provide examples.",
        formats=frozenset({DocumentFormat.OAS3}),
        shape=dict,
    ),
)
