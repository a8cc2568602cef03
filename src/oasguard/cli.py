"""Command-line interface for oasguard using Click."""
from __future__ import annotations

import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Final

import click

from oasguard.config import load_config
from oasguard.constants import OutputFormat, Severity, __version__
from oasguard.explain import format_rule_detail, format_rule_table
from oasguard.rules.base import RuleDefinition
from oasguard.rules.registry import all_rules, build_ruleset
from oasguard.ruleset import Ruleset, RulesetError
from oasguard.runner import format_results, lint_paths
from oasguard.types import ConfigError, OasGuardConfig


def _effective_severities(ruleset: Ruleset) -> dict[str, Severity]:
    return {rule.name: rule.severity for rule in ruleset}


def format_config_text(*, config: OasGuardConfig, ruleset: Ruleset) -> str:
    """Format configuration as human-readable text."""
    lines: list[str] = [
        "oasguard Configuration",
        "=" * 40,
        "",
        f"Config file: {config.config_path or '(defaults)'}",
        "",
        "File Discovery:",
        f"  Include: {', '.join(config.include)}",
        f"  Exclude: {', '.join(config.exclude[:5])}{'...' if len(config.exclude) > 5 else ''}",
        "",
        "Output:",
        f"  Format: {config.output_format.value}",
        f"  Show source: {config.show_source}",
        f"  Fail severity: {config.fail_severity.value}",
        "",
        "Rule Severities:",
    ]

    severities: dict[str, Severity] = _effective_severities(ruleset)
    for rule in all_rules():
        status: str = severities.get(rule.name, Severity.OFF).value.upper()
        lines.append(f"  {rule.name}: {status}")

    return "\n".join(lines)


def format_config_json(*, config: OasGuardConfig, ruleset: Ruleset) -> str:
    """Format configuration as JSON."""
    severities: dict[str, Severity] = _effective_severities(ruleset)
    data: dict[str, Any] = {
        "config_path": str(config.config_path) if config.config_path else None,
        "include": list(config.include),
        "exclude": list(config.exclude),
        "output_format": config.output_format.value,
        "show_source": config.show_source,
        "fail_severity": config.fail_severity.value,
        "rules": {
            rule.name: severities.get(rule.name, Severity.OFF).value
            for rule in all_rules()
        },
    }
    return json.dumps(data, indent=2)


class ConfigType(click.ParamType):
    """Custom Click parameter type for config path."""

    name: str = "path"

    def convert(
        self,
        value: str | Path | None,
        param: click.Parameter | None,
        ctx: click.Context | None,
    ) -> Path | None:
        if value is None:
            return None
        return Path(value)


CONFIG_TYPE: Final[ConfigType] = ConfigType()

_SEVERITY_CHOICES: Final[list[str]] = [
    s.value for s in Severity if s is not Severity.OFF
]


@click.group()
@click.version_option(version=__version__, prog_name="oasguard")
@click.option(
    "--config",
    "config_path",
    type=CONFIG_TYPE,
    default=None,
    help="Path to pyproject.toml (default: search upward from current directory)",
)
@click.option("--verbose", is_flag=True, help="Show progress and timing")
@click.option("--debug", is_flag=True, help="Show detailed trace")
@click.pass_context
def cli(
    ctx: click.Context,
    *,
    config_path: Path | None,
    verbose: bool,
    debug: bool,
) -> None:
    """oasguard - API design guideline checks for OpenAPI and Swagger documents."""
    level: int = (
        logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    )
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        stream=sys.stderr,
    )

    ctx.ensure_object(dict)
    try:
        cfg: OasGuardConfig = load_config(path=config_path)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        if e.path:
            click.echo(f"  in: {e.path}", err=True)
        ctx.exit(1)
        return

    try:
        ruleset: Ruleset = build_ruleset(overrides=cfg.rules)
    except RulesetError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
        return

    ctx.obj["config"] = cfg
    ctx.obj["ruleset"] = ruleset


@cli.command()
@click.option("--validate", is_flag=True, help="Only validate configuration, don't print")
@click.option("--json", "as_json", is_flag=True, help="Output configuration as JSON")
@click.pass_context
def config(ctx: click.Context, *, validate: bool, as_json: bool) -> None:
    """Show or validate configuration."""
    cfg: OasGuardConfig = ctx.obj["config"]
    ruleset: Ruleset = ctx.obj["ruleset"]

    if validate:
        click.echo(f"Configuration valid: {cfg.config_path or '(defaults)'}")
        return

    if as_json:
        click.echo(format_config_json(config=cfg, ruleset=ruleset))
    else:
        click.echo(format_config_text(config=cfg, ruleset=ruleset))


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True, path_type=Path))
@click.option(
    "--format",
    "output_format",
    type=click.Choice([f.value for f in OutputFormat]),
    default=None,
    help="Output format (overrides config)",
)
@click.option("--show-source/--no-show-source", default=None, help="Show source snippets")
@click.option(
    "--fail-severity",
    type=click.Choice(_SEVERITY_CHOICES),
    default=None,
    help="Lowest severity that makes the run fail (overrides config)",
)
@click.option(
    "--rule",
    "rule_names",
    multiple=True,
    help="Only run the named rule (repeatable)",
)
@click.pass_context
def lint(
    ctx: click.Context,
    paths: tuple[Path, ...],
    *,
    output_format: str | None,
    show_source: bool | None,
    fail_severity: str | None,
    rule_names: tuple[str, ...],
) -> None:
    """Lint OpenAPI/Swagger documents."""
    cfg: OasGuardConfig = ctx.obj["config"]
    ruleset: Ruleset = ctx.obj["ruleset"]

    # Apply CLI overrides
    overrides: dict[str, Any] = {}
    if output_format is not None:
        overrides["output_format"] = OutputFormat(output_format)
    if show_source is not None:
        overrides["show_source"] = show_source
    if fail_severity is not None:
        overrides["fail_severity"] = Severity(fail_severity)

    if overrides:
        cfg = replace(cfg, **overrides)

    if rule_names:
        try:
            ruleset = ruleset.select(rule_names)
        except RulesetError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
            return

    if not paths:
        paths = (Path("."),)

    result = lint_paths(paths=paths, config=cfg, ruleset=ruleset)
    output: str = format_results(result=result, config=cfg)
    if output:
        click.echo(output)
    ctx.exit(result.exit_code)


@cli.command()
@click.argument("rule_name", required=False, default=None)
@click.option("--all", "show_all", is_flag=True, help="List all rules with severities")
@click.pass_context
def explain(ctx: click.Context, rule_name: str | None, *, show_all: bool) -> None:
    """Show rule documentation."""
    ruleset: Ruleset = ctx.obj["ruleset"]
    severities: dict[str, Severity] = _effective_severities(ruleset)

    if show_all:
        click.echo(format_rule_table(rules=all_rules(), severities=severities))
        return

    if rule_name is None:
        click.echo("Usage: oasguard explain <RULE_NAME> or oasguard explain --all")
        ctx.exit(1)
        return

    catalog: dict[str, RuleDefinition] = {rule.name: rule for rule in all_rules()}
    rule: RuleDefinition | None = catalog.get(rule_name)
    if rule is None:
        click.echo(f"Error: Unknown rule '{rule_name}'.", err=True)
        ctx.exit(1)
        return

    click.echo(format_rule_detail(
        rule=rule,
        severity=severities.get(rule.name, Severity.OFF),
    ))


def main() -> None:
    """Main entry point for oasguard CLI."""
    cli()


if __name__ == "__main__":
    main()
