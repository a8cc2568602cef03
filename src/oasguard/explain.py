"""Rule documentation for the oasguard explain command."""
from __future__ import annotations

from collections.abc import Iterable, Mapping

from oasguard.constants import Severity
from oasguard.rules.base import RuleDefinition


def _formats(rule: RuleDefinition) -> str:
    if not rule.formats:
        return "any"
    return ", ".join(sorted(f.value for f in rule.formats))


def format_rule_detail(*, rule: RuleDefinition, severity: Severity) -> str:
    """Format a single rule's full documentation."""
    lines: list[str] = [
        f"{rule.name}",
        f"Formats: {_formats(rule)} | Severity: {severity.value}"
        f" | Default: {rule.severity.value}",
        "",
        f"  {rule.description or '(no description)'}",
        "",
        "  Given:",
    ]
    lines.extend(f"    {query}" for query in rule.given)

    if isinstance(rule.message, str):
        lines.extend(["", f"  Message: {rule.message}"])

    lines.extend([
        "",
        "  Config: [tool.oasguard.rules]",
        f'          "{rule.name}" = "off"',
    ])

    return "\n".join(lines)


def format_rule_table(
    *,
    rules: Iterable[RuleDefinition],
    severities: Mapping[str, Severity],
) -> str:
    """Format all rules as a summary table, in rule table order."""
    lines: list[str] = [
        f"{'RULE':<36} {'SEVERITY':<10} {'FORMATS':<12}",
        "-" * 60,
    ]
    for rule in rules:
        severity: Severity = severities.get(rule.name, Severity.OFF)
        lines.append(f"{rule.name:<36} {severity.value:<10} {_formats(rule):<12}")
    return "\n".join(lines)
