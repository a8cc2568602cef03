"""Ruleset composition: inherited rule sets, local rules and severity overrides."""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final, Literal

from oasguard.constants import Severity
from oasguard.rules.base import RuleDefinition
from oasguard.selector import Selector, SelectorError, compile_selector

logger: logging.Logger = logging.getLogger(__name__)

ExtendsMode = Literal["off", "recommended", "all"]

_RULE_NAME_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.\-]*$")


class RulesetError(Exception):
    """The rule table cannot be built."""


@dataclass(frozen=True, slots=True)
class Extends:
    """Inherit a rule sequence, with every rule off, recommended ones on, or all on."""

    rules: tuple[RuleDefinition, ...]
    mode: ExtendsMode = "recommended"


@dataclass(frozen=True, slots=True)
class RulesetLayer:
    """One composition layer. Applied as extends, then definitions, then overrides."""

    extends: tuple[Extends, ...] = ()
    definitions: tuple[RuleDefinition, ...] = ()
    overrides: Mapping[str, Severity] = field(
        default_factory=lambda: MappingProxyType({})
    )


@dataclass(frozen=True, slots=True)
class EffectiveRule:
    """A rule as it runs: its definition, final severity and compiled selectors."""

    definition: RuleDefinition
    severity: Severity
    selectors: tuple[Selector, ...]

    @property
    def name(self) -> str:
        return self.definition.name


class Ruleset:
    """Immutable, ordered table of enabled rules."""

    def __init__(self, rules: Iterable[EffectiveRule]) -> None:
        self._rules: tuple[EffectiveRule, ...] = tuple(rules)
        self._by_name: MappingProxyType[str, EffectiveRule] = MappingProxyType(
            {rule.name: rule for rule in self._rules}
        )

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._by_name)

    def get(self, name: str) -> EffectiveRule | None:
        return self._by_name.get(name)

    def select(self, names: Iterable[str]) -> Ruleset:
        """Return a ruleset restricted to ``names``, keeping table order."""
        wanted: set[str] = set(names)
        unknown: set[str] = wanted - set(self._by_name)
        if unknown:
            raise RulesetError(f"Unknown or disabled rules: {sorted(unknown)}")
        return Ruleset(rule for rule in self._rules if rule.name in wanted)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[EffectiveRule]:
        return iter(self._rules)


def _check_definition(rule: RuleDefinition) -> tuple[Selector, ...]:
    if not _RULE_NAME_RE.match(rule.name):
        raise RulesetError(f"Invalid rule name: {rule.name!r}")
    if not callable(rule.then):
        raise RulesetError(f"Rule {rule.name!r} has no predicate")
    if not rule.given:
        raise RulesetError(f"Rule {rule.name!r} has no selector")
    if rule.severity is Severity.OFF:
        raise RulesetError(f"Rule {rule.name!r} cannot default to 'off'")
    try:
        return tuple(compile_selector(query) for query in rule.given)
    except SelectorError as e:
        raise RulesetError(f"Rule {rule.name!r}: {e}") from e


def _unique(rules: Iterable[RuleDefinition]) -> list[RuleDefinition]:
    seen: set[str] = set()
    result: list[RuleDefinition] = []
    for rule in rules:
        if rule.name in seen:
            raise RulesetError(f"Duplicate rule name: {rule.name!r}")
        seen.add(rule.name)
        result.append(rule)
    return result


def compose_ruleset(*layers: RulesetLayer) -> Ruleset:
    """
    Merge layers into the effective rule table.

    Later layers override earlier ones. A rule whose final severity is
    ``Severity.OFF`` is dropped from the table.

    Raises:
        RulesetError: On duplicate or invalid names, rules without a
            predicate, overrides of unknown rules, or malformed selectors.
    """
    definitions: dict[str, RuleDefinition] = {}
    selectors: dict[str, tuple[Selector, ...]] = {}
    severities: dict[str, Severity] = {}

    for layer in layers:
        for extends in layer.extends:
            for rule in _unique(extends.rules):
                selectors[rule.name] = _check_definition(rule)
                definitions[rule.name] = rule
                if extends.mode == "all" or (extends.mode == "recommended" and rule.recommended):
                    severities[rule.name] = rule.severity
                else:
                    severities[rule.name] = Severity.OFF

        for rule in _unique(layer.definitions):
            if rule.name in definitions:
                raise RulesetError(f"Duplicate rule name: {rule.name!r}")
            selectors[rule.name] = _check_definition(rule)
            definitions[rule.name] = rule
            severities[rule.name] = rule.severity

        for name, severity in layer.overrides.items():
            if name not in definitions:
                raise RulesetError(f"Cannot override unknown rule: {name!r}")
            severities[name] = severity

    enabled: list[EffectiveRule] = [
        EffectiveRule(
            definition=rule,
            severity=severities[name],
            selectors=selectors[name],
        )
        for name, rule in definitions.items()
        if severities[name] is not Severity.OFF
    ]
    logger.debug(
        "Composed ruleset: %d of %d rules enabled", len(enabled), len(definitions),
    )
    return Ruleset(enabled)
