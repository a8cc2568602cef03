"""Rule registry and the default guideline profile for oasguard."""
from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Final

from oasguard.constants import Severity
from oasguard.rules.base import RuleDefinition
from oasguard.rules.examples import EXAMPLE_RULES
from oasguard.rules.oas import OAS_RULES
from oasguard.rules.patch import PATCH_RULES
from oasguard.rules.sort_parameter import SORT_PARAMETER_RULES
from oasguard.ruleset import Extends, Ruleset, RulesetLayer, compose_ruleset

CUSTOM_RULES: Final[tuple[RuleDefinition, ...]] = (
    *EXAMPLE_RULES,
    *SORT_PARAMETER_RULES,
    *PATCH_RULES,
)

PROFILE: Final[RulesetLayer] = RulesetLayer(
    extends=(Extends(rules=OAS_RULES, mode="off"),),
    definitions=CUSTOM_RULES,
    overrides=MappingProxyType({
        "oas3-schema": Severity.ERROR,
        "oas2-schema": Severity.ERROR,
        "oas3-operation-security-defined": Severity.ERROR,
        "oas2-operation-security-defined": Severity.ERROR,
    }),
)


def all_rules() -> tuple[RuleDefinition, ...]:
    """Every rule the profile knows about, enabled or not, in table order."""
    return (*OAS_RULES, *CUSTOM_RULES)


def known_rule_names() -> frozenset[str]:
    return frozenset(rule.name for rule in all_rules())


def build_ruleset(*, overrides: Mapping[str, Severity] | None = None) -> Ruleset:
    """Compose the profile, with user severity overrides applied last."""
    layers: list[RulesetLayer] = [PROFILE]
    if overrides:
        layers.append(RulesetLayer(overrides=MappingProxyType(dict(overrides))))
    return compose_ruleset(*layers)
