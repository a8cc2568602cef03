"""Standard OpenAPI rules inherited by guideline profiles."""
from __future__ import annotations

import functools
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any, Final

import jsonschema

from oasguard.constants import DocumentFormat, Severity
from oasguard.rules.base import Failure, Predicate, RuleDefinition, Target

HTTP_METHODS: Final[tuple[str, ...]] = (
    "get",
    "put",
    "post",
    "delete",
    "options",
    "head",
    "patch",
    "trace",
)

OPERATIONS: Final[str] = (
    "$.paths[*][?("
    + " || ".join(f"@property == '{method}'" for method in HTTP_METHODS)
    + ")]"
)

_OAS2: Final[frozenset[DocumentFormat]] = frozenset({DocumentFormat.OAS2})
_OAS3: Final[frozenset[DocumentFormat]] = frozenset({DocumentFormat.OAS3})
_ANY_OAS: Final[frozenset[DocumentFormat]] = _OAS2 | _OAS3


def _non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _require_field(
    field: str,
    *,
    check: Callable[[Any], bool] | None = None,
) -> Predicate:
    def predicate(target: Target) -> list[str]:
        value: Any = target.value.get(field) if isinstance(target.value, dict) else None
        ok: bool = value is not None if check is None else check(value)
        return [] if ok else [f'"{field}" is missing or empty']

    return predicate


def _trailing_slash(target: Target) -> list[str]:
    key: str = str(target.path[-1])
    if len(key) > 1 and key.endswith("/"):
        return ["Path must not end with slash"]
    return []


_SCHEMA_DIR: Final[Path] = Path(__file__).parent.parent / "schemas"


@functools.cache
def _validator(name: str) -> jsonschema.Draft7Validator:
    """Load a bundled ``<name>.schema.json`` document validator."""
    schema_file: Path = _SCHEMA_DIR / f"{name}.schema.json"
    schema: dict[str, Any] = json.loads(schema_file.read_text(encoding="utf-8"))
    return jsonschema.Draft7Validator(schema)


def _schema_check(name: str) -> Predicate:
    """Validate the whole document, reporting each error where it occurs."""

    def predicate(target: Target) -> list[Failure]:
        errors: list[jsonschema.ValidationError] = sorted(
            _validator(name).iter_errors(target.value),
            key=lambda e: target.document.order_of((*target.path, *e.absolute_path)),
        )
        return [
            Failure(message=error.message, path=tuple(error.absolute_path))
            for error in errors
        ]

    return predicate


def _security_defined(*, schemes_path: tuple[str, ...]) -> Predicate:
    label: str = ".".join(schemes_path)

    def predicate(target: Target) -> list[str]:
        schemes: Any = target.document.get(schemes_path)
        declared: set[str] = set(schemes) if isinstance(schemes, dict) else set()
        return [
            f'"security" value "{name}" must match a scheme defined in the "{label}" object'
            for name in target.value
            if name not in declared
        ]

    return predicate


OAS_RULES: Final[tuple[RuleDefinition, ...]] = (
    RuleDefinition(
        name="info-contact",
        given=("$.info",),
        then=_require_field("contact", check=lambda v: isinstance(v, dict)),
        message='Info object must have "contact" object.',
        description="Info object should contain contact details.",
        formats=_ANY_OAS,
        shape=dict,
    ),
    RuleDefinition(
        name="info-description",
        given=("$.info",),
        then=_require_field("description", check=_non_empty_string),
        message='Info "description" must be present and non-empty string.',
        description="Info object should describe the API.",
        formats=_ANY_OAS,
        shape=dict,
    ),
    RuleDefinition(
        name="operation-description",
        given=(OPERATIONS,),
        then=_require_field("description", check=_non_empty_string),
        message='Operation "description" must be present and non-empty string.',
        description="Operations should describe what they do.",
        formats=_ANY_OAS,
        shape=dict,
    ),
    RuleDefinition(
        name="operation-operationId",
        given=(OPERATIONS,),
        then=_require_field("operationId", check=_non_empty_string),
        message='Operation must have "operationId".',
        description="Operations should carry an operationId.",
        formats=_ANY_OAS,
        shape=dict,
    ),
    RuleDefinition(
        name="operation-tags",
        given=(OPERATIONS,),
        then=_require_field("tags", check=lambda v: isinstance(v, list) and bool(v)),
        message='Operation must have non-empty "tags" array.',
        description="Operations should be grouped with tags.",
        formats=_ANY_OAS,
        shape=dict,
    ),
    RuleDefinition(
        name="path-keys-no-trailing-slash",
        given=("$.paths[*]",),
        then=_trailing_slash,
        message="Path must not end with slash.",
        description="Path keys should not end with a slash.",
        formats=_ANY_OAS,
    ),
    RuleDefinition(
        name="oas2-schema",
        given=("$",),
        then=_schema_check("oas2"),
        severity=Severity.ERROR,
        description="Swagger 2.0 documents must validate against the Swagger 2.0 schema.",
        formats=_OAS2,
    ),
    RuleDefinition(
        name="oas3-schema",
        given=("$",),
        then=_schema_check("oas3"),
        severity=Severity.ERROR,
        description="OpenAPI 3.x documents must validate against the OpenAPI 3.x schema.",
        formats=_OAS3,
    ),
    RuleDefinition(
        name="oas2-operation-security-defined",
        given=("$.security[*]", f"{OPERATIONS}.security[*]"),
        then=_security_defined(schemes_path=("securityDefinitions",)),
        description="Security requirements must reference declared schemes.",
        formats=_OAS2,
        shape=dict,
    ),
    RuleDefinition(
        name="oas3-operation-security-defined",
        given=("$.security[*]", f"{OPERATIONS}.security[*]"),
        then=_security_defined(schemes_path=("components", "securitySchemes")),
        description="Security requirements must reference declared schemes.",
        formats=_OAS3,
        shape=dict,
    ),
)
