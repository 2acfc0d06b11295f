from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click

from .group_resolver import GroupError, resolve_dependency_groups, resolve_optional_dependencies
from .inspector import inspect_pyproject
from .license_expression import LicenseError, LicenseExpressionValidator
from .license_glob import GlobError, validate_license_glob
from .pyproject import PyProjectError, PyProjectToml, load_pyproject
from .reporting import write_report
from .settings import SETTINGS_ENV_VAR, InspectorSettings, SettingsError, resolve_settings


def _load(path: str) -> PyProjectToml:
    try:
        return load_pyproject(Path(path))
    except PyProjectError as exc:
        click.echo(str(exc), err=True)
        raise SystemExit(1)


def _settings(path: Optional[str]) -> InspectorSettings:
    try:
        return resolve_settings(path)
    except (OSError, RuntimeError, SettingsError) as exc:
        click.echo(f"Unable to load settings: {exc}", err=True)
        raise SystemExit(1)


settings_option = click.option(
    "--settings",
    "settings_path",
    type=click.Path(exists=True, dir_okay=False, path_type=str),
    envvar=SETTINGS_ENV_VAR,
    help=f"YAML settings file (defaults to ${SETTINGS_ENV_VAR}).",
)


@click.group()
def main() -> None:
    """Validate and resolve pyproject.toml licensing and dependency-group metadata."""


@main.command()
@click.argument(
    "pyproject",
    default="pyproject.toml",
    type=click.Path(exists=True, dir_okay=False, path_type=str),
)
@click.option("--group", "-g", "groups", multiple=True, help="Dependency group to resolve into the report.")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["json", "markdown", "md", "html"], case_sensitive=False),
    default="markdown",
    show_default=True,
    help="Output format for the report.",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, writable=True, path_type=str),
    help="Write the report to a file instead of stdout.",
)
@click.option("--strict", is_flag=True, help="Exit non-zero on findings of any severity.")
@settings_option
def check(
    pyproject: str,
    groups: tuple[str, ...],
    fmt: str,
    output: Optional[str],
    strict: bool,
    settings_path: Optional[str],
) -> None:
    """Inspect license, license-files and dependency groups of a pyproject.toml."""

    document = _load(pyproject)
    report = inspect_pyproject(document, _settings(settings_path), groups)

    destination = Path(output) if output else None
    rendered = write_report(report, fmt, destination)
    if not destination:
        click.echo(rendered)

    if not report.passed or (strict and report.findings):
        raise SystemExit(1)


@main.command()
@click.argument(
    "pyproject",
    default="pyproject.toml",
    type=click.Path(exists=True, dir_okay=False, path_type=str),
)
@click.option("--group", "-g", "groups", multiple=True, help="Dependency group to include.")
@click.option("--extra", "-e", "extras", multiple=True, help="Optional-dependency extra to include.")
@click.option("--json", "json_output", is_flag=True, help="Emit a JSON array instead of one requirement per line.")
@settings_option
def resolve(
    pyproject: str,
    groups: tuple[str, ...],
    extras: tuple[str, ...],
    json_output: bool,
    settings_path: Optional[str],
) -> None:
    """Print the requirements of the selected groups and extras, deduplicated in order."""

    document = _load(pyproject)
    selected = list(groups) or _settings(settings_path).default_groups
    if not selected and not extras:
        click.echo("No groups or extras selected; nothing to resolve.", err=True)
        raise SystemExit(1)

    project = document.project
    project_name = project.name if project else None
    optional = project.optional_dependencies if project else {}
    try:
        requirements = resolve_optional_dependencies(project_name, optional, extras) if extras else []
        for requirement in resolve_dependency_groups(
            document.dependency_groups or {},
            selected,
            project_name=project_name,
            optional_dependencies=optional,
        ):
            if requirement not in requirements:
                requirements.append(requirement)
    except GroupError as exc:
        click.echo(str(exc), err=True)
        raise SystemExit(1)

    if json_output:
        click.echo(json.dumps(requirements, indent=2))
    else:
        for requirement in requirements:
            click.echo(requirement)


@main.command(name="license")
@click.argument("expressions", nargs=-1)
@click.option("--canonical", is_flag=True, help="Print the canonical form of each valid expression.")
@settings_option
def license_command(expressions: tuple[str, ...], canonical: bool, settings_path: Optional[str]) -> None:
    """Validate SPDX license expressions."""

    if not expressions:
        click.echo("No license expressions supplied; nothing to validate.", err=True)
        raise SystemExit(1)

    validator = LicenseExpressionValidator.from_settings(_settings(settings_path))
    failed = False
    for expression in expressions:
        try:
            normalized = validator.canonicalize(expression)
        except LicenseError as exc:
            failed = True
            click.echo(f"[{exc.code}] {exc}", err=True)
            continue
        click.echo(normalized if canonical else f"ok: {expression}")

    if failed:
        raise SystemExit(1)


@main.command(name="glob")
@click.argument("patterns", nargs=-1)
def glob_command(patterns: tuple[str, ...]) -> None:
    """Validate license-files glob patterns."""

    if not patterns:
        click.echo("No glob patterns supplied; nothing to validate.", err=True)
        raise SystemExit(1)

    failed = False
    for pattern in patterns:
        try:
            validate_license_glob(pattern)
        except GlobError as exc:
            failed = True
            click.echo(f"[{exc.code}] {exc}", err=True)
            continue
        click.echo(f"ok: {pattern}")

    if failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
