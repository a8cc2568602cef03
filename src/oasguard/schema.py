"""OpenAPI structure helpers shared by selector functions and predicates."""
from __future__ import annotations

from typing import Any, Final

from oasguard.document import Document, JsonPath

_MAX_REF_DEPTH: Final[int] = 32


def deref(document: Document, value: Any) -> Any:
    """
    Follow local ``$ref`` chains.

    Returns None when a reference cannot be resolved or is circular.
    """
    seen: set[str] = set()
    while isinstance(value, dict) and isinstance(value.get("$ref"), str):
        ref: str = value["$ref"]
        if ref in seen or len(seen) >= _MAX_REF_DEPTH:
            return None
        seen.add(ref)
        resolved: tuple[JsonPath, Any] | None = document.resolve_pointer(ref)
        if resolved is None:
            return None
        value = resolved[1]
    return value


def schema_properties(
    document: Document,
    schema: Any,
    *,
    _seen: frozenset[int] = frozenset(),
) -> dict[str, Any] | None:
    """
    Return declared properties of an object schema, merging ``allOf`` members.

    A schema that reaches itself again through ``allOf`` contributes nothing
    the second time.
    """
    resolved: Any = deref(document, schema)
    if not isinstance(resolved, dict) or id(resolved) in _seen:
        return None
    seen: frozenset[int] = _seen | {id(resolved)}

    found: bool = False
    properties: dict[str, Any] = {}
    own: Any = resolved.get("properties")
    if isinstance(own, dict):
        found = True
        properties.update(own)

    members: Any = resolved.get("allOf")
    if isinstance(members, list):
        for member in members:
            nested: dict[str, Any] | None = schema_properties(
                document, member, _seen=seen,
            )
            if nested is not None:
                found = True
                properties.update(nested)

    return properties if found else None


def _has_type(schema: dict[str, Any], name: str) -> bool:
    declared: Any = schema.get("type")
    if isinstance(declared, list):
        return name in declared
    return declared == name


def is_array_schema(document: Document, schema: Any) -> bool:
    resolved: Any = deref(document, schema)
    if not isinstance(resolved, dict):
        return False
    if _has_type(resolved, "array"):
        return True
    return "type" not in resolved and "items" in resolved


def is_collection_schema(document: Document, schema: Any) -> bool:
    """
    True for an array schema, or an object wrapping exactly one array property.

    The wrapped form covers envelopes like ``{"items": [...], "total": 3}``.
    """
    if is_array_schema(document, schema):
        return True

    resolved: Any = deref(document, schema)
    if not isinstance(resolved, dict):
        return False
    if "type" in resolved and not _has_type(resolved, "object"):
        return False

    properties: dict[str, Any] | None = schema_properties(document, resolved)
    if not properties:
        return False
    array_count: int = sum(
        1 for prop in properties.values() if is_array_schema(document, prop)
    )
    return array_count == 1


def response_schemas(document: Document, response: Any) -> list[Any]:
    """Body schemas of a response object (Swagger 2 ``schema`` or OAS3 ``content``)."""
    resolved: Any = deref(document, response)
    if not isinstance(resolved, dict):
        return []
    if "schema" in resolved:
        return [resolved["schema"]]

    content: Any = resolved.get("content")
    if not isinstance(content, dict):
        return []
    return [
        media["schema"]
        for media in content.values()
        if isinstance(media, dict) and "schema" in media
    ]


def request_body_schemas(document: Document, operation: Any) -> list[Any]:
    """Body schemas a client sends: OAS3 ``requestBody`` or Swagger 2 ``in: body``."""
    if not isinstance(operation, dict):
        return []

    body: Any = deref(document, operation.get("requestBody"))
    if isinstance(body, dict):
        content: Any = body.get("content")
        if isinstance(content, dict):
            return [
                media["schema"]
                for media in content.values()
                if isinstance(media, dict) and "schema" in media
            ]
        return []

    schemas: list[Any] = []
    parameters: Any = operation.get("parameters")
    if isinstance(parameters, list):
        for parameter in parameters:
            resolved: Any = deref(document, parameter)
            if isinstance(resolved, dict) and resolved.get("in") == "body":
                if "schema" in resolved:
                    schemas.append(resolved["schema"])
    return schemas


def effective_parameters(document: Document, operation_path: JsonPath) -> list[dict[str, Any]]:
    """
    Parameters that apply to an operation.

    Path-item parameters are included unless the operation redefines the
    same ``name``/``in`` pair.
    """
    merged: dict[tuple[Any, Any], dict[str, Any]] = {}
    for path in (operation_path[:-1], operation_path):
        container: Any = document.get(path)
        if not isinstance(container, dict):
            continue
        parameters: Any = container.get("parameters")
        if not isinstance(parameters, list):
            continue
        for parameter in parameters:
            resolved: Any = deref(document, parameter)
            if isinstance(resolved, dict):
                merged[(resolved.get("name"), resolved.get("in"))] = resolved
    return list(merged.values())
