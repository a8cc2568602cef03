"""PATCH operations succeed with either ``200`` and a full representation or ``204``."""
from __future__ import annotations

from typing import Any, Final

from oasguard.constants import GUIDELINES_URL, DocumentFormat, Severity
from oasguard.rules.base import RuleDefinition, Target
from oasguard.schema import request_body_schemas, response_schemas, schema_properties

PATCH_SUCCESS_MESSAGE: Final[str] = (
    "PATCH operations return either '200 OK' with full representation "
    f"or '204 No Content' ({GUIDELINES_URL})"
)


def _body_properties(target: Target, schemas: list[Any]) -> set[str] | None:
    """Union of declared properties, or None when no schema declares any."""
    found: set[str] | None = None
    for schema in schemas:
        properties: dict[str, Any] | None = schema_properties(target.document, schema)
        if properties is not None:
            found = (found or set()) | set(properties)
    return found


def _full_representation(target: Target) -> set[str] | None:
    """Properties of the ``200`` body of the GET on the same path, if any."""
    path_item: Any = target.ancestor()
    if not isinstance(path_item, dict):
        return None
    get: Any = target.resolve(path_item.get("get"))
    if not isinstance(get, dict):
        return None
    responses: Any = target.resolve(get.get("responses"))
    if not isinstance(responses, dict) or "200" not in responses:
        return None
    return _body_properties(target, response_schemas(target.document, responses["200"]))


def _partial_representation(target: Target, response: Any) -> str | None:
    schemas: list[Any] = response_schemas(target.document, response)
    if not schemas:
        return "'200' response has no body; use '204' instead"

    returned: set[str] | None = _body_properties(target, schemas)
    if returned is None:
        return None

    full: set[str] | None = _full_representation(target)
    if full is not None:
        missing: set[str] = full - returned
        extra: set[str] = returned - full
        if missing or extra:
            return (
                "'200' response body differs from the GET representation "
                f"(missing: {sorted(missing)}, extra: {sorted(extra)})"
            )
        return None

    sent: set[str] | None = _body_properties(
        target, request_body_schemas(target.document, target.resolve(target.value)),
    )
    if sent is not None and not sent <= returned:
        return (
            "'200' response body omits patched properties "
            f"{sorted(sent - returned)}; possible partial representation"
        )
    return None


def patch_success_codes(target: Target) -> list[str]:
    """
    Check a PATCH operation's success responses.

    Exactly one of ``200``/``204`` must be declared. A ``200`` body must
    be a full representation: the same properties as the GET on the same
    path when one exists, otherwise at least every property in the
    request body.
    """
    operation: Any = target.resolve(target.value)
    if not isinstance(operation, dict):
        return ["PATCH operation is not an object"]

    responses: Any = target.resolve(operation.get("responses"))
    if not isinstance(responses, dict):
        return ["PATCH operation declares no responses"]

    has_200: bool = "200" in responses
    has_204: bool = "204" in responses
    if has_200 and has_204:
        return ["PATCH operation declares both '200' and '204'"]
    if not has_200 and not has_204:
        return ["PATCH operation declares neither '200' nor '204'"]

    if has_200:
        partial: str | None = _partial_representation(target, responses["200"])
        if partial is not None:
            return [partial]
    return []


PATCH_RULES: Final[tuple[RuleDefinition, ...]] = (
    RuleDefinition(
        name="patch-200-204-success",
        given=("$.paths[*].patch",),
        then=patch_success_codes,
        severity=Severity.ERROR,
        message=PATCH_SUCCESS_MESSAGE,
        description="PATCH returns '200 OK' with a full representation or '204 No Content'.",
        formats=frozenset({DocumentFormat.OAS2, DocumentFormat.OAS3}),
    ),
)
