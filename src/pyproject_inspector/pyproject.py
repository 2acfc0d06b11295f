from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

try:  # Python < 3.11 compatibility
    import tomllib  # type: ignore
except ModuleNotFoundError:  # pragma: no cover - exercised in older runtimes
    import tomli as tomllib  # type: ignore

from .group_resolver import ResolvedDependencies, resolve_all
from .types_groups import DependencyGroups, group_entry_from_toml
from .types_license import LicenseField, license_field_from_toml


class PyProjectError(ValueError):
    """Raised when a pyproject.toml field has the wrong shape."""

    def __init__(self, field_path: str, reason: str) -> None:
        super().__init__(f"Invalid `{field_path}`: {reason}")
        self.field_path = field_path
        self.reason = reason


@dataclass
class Project:
    name: str
    version: Optional[str] = None
    license: Optional[LicenseField] = None
    license_files: Optional[List[str]] = None
    dependencies: List[str] = field(default_factory=list)
    optional_dependencies: Dict[str, List[str]] = field(default_factory=dict)
    dynamic: List[str] = field(default_factory=list)


@dataclass
class PyProjectToml:
    project: Optional[Project] = None
    dependency_groups: Optional[DependencyGroups] = None
    source: str = "pyproject.toml"

    def resolve(self) -> ResolvedDependencies:
        """Resolve all extras and dependency groups into flat requirement lists."""

        return resolve_all(
            self.dependency_groups,
            project_name=self.project.name if self.project else None,
            optional_dependencies=self.project.optional_dependencies if self.project else None,
        )


def _string_list(value: object, field_path: str) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise PyProjectError(field_path, "expected an array of strings")
    return list(value)


def _parse_project(raw: object) -> Project:
    if not isinstance(raw, dict):
        raise PyProjectError("project", "expected a table")
    name = raw.get("name")
    if not isinstance(name, str):
        raise PyProjectError("project.name", "expected a string")
    version = raw.get("version")
    if version is not None and not isinstance(version, str):
        raise PyProjectError("project.version", "expected a string")

    license_value: Optional[LicenseField] = None
    if "license" in raw:
        try:
            license_value = license_field_from_toml(raw["license"])
        except ValueError as exc:
            raise PyProjectError("project.license", str(exc)) from exc

    license_files = None
    if "license-files" in raw:
        license_files = _string_list(raw["license-files"], "project.license-files")

    optional: Dict[str, List[str]] = {}
    raw_optional = raw.get("optional-dependencies", {}) or {}
    if not isinstance(raw_optional, dict):
        raise PyProjectError("project.optional-dependencies", "expected a table")
    for extra, values in raw_optional.items():
        optional[extra] = _string_list(values, f"project.optional-dependencies.{extra}")

    return Project(
        name=name,
        version=version,
        license=license_value,
        license_files=license_files,
        dependencies=_string_list(raw.get("dependencies", []), "project.dependencies"),
        optional_dependencies=optional,
        dynamic=_string_list(raw.get("dynamic", []), "project.dynamic"),
    )


def _parse_dependency_groups(raw: object) -> DependencyGroups:
    if not isinstance(raw, dict):
        raise PyProjectError("dependency-groups", "expected a table")
    groups: DependencyGroups = {}
    for name, entries in raw.items():
        if not isinstance(entries, list):
            raise PyProjectError(f"dependency-groups.{name}", "expected an array")
        parsed = []
        for index, entry in enumerate(entries):
            try:
                parsed.append(group_entry_from_toml(entry))
            except ValueError as exc:
                raise PyProjectError(f"dependency-groups.{name}[{index}]", str(exc)) from exc
        groups[name] = parsed
    return groups


def parse_pyproject(text: str, source: str = "pyproject.toml") -> PyProjectToml:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise PyProjectError(source, f"TOML parse error: {exc}") from exc

    project = _parse_project(data["project"]) if "project" in data else None
    groups = (
        _parse_dependency_groups(data["dependency-groups"]) if "dependency-groups" in data else None
    )
    return PyProjectToml(project=project, dependency_groups=groups, source=source)


def load_pyproject(path: Path) -> PyProjectToml:
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise PyProjectError(str(path), f"not valid UTF-8: {exc}") from exc
    return parse_pyproject(text, source=str(path))
