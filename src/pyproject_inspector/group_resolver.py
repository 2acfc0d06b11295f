from __future__ import annotations

"""Expansion of ``[dependency-groups]`` and self-referencing extras.

Groups are expanded depth first. The names on the current inclusion path are
tracked per call so that re-entering a group still being expanded is reported
as a cycle, while a group that was already fully expanded is reused from the
call's cache. Requirements are deduplicated by exact string equality, first
occurrence wins.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from packaging.requirements import InvalidRequirement, Requirement

from .types_groups import DependencyGroups, GroupInclude, RequirementEntry, normalize_name

_EXTRAS_RE = re.compile(r"^[^\[;@]*\[([^\]]*)\]")


class GroupError(ValueError):
    """Base class for dependency group resolution failures."""


class UnknownGroup(GroupError):
    def __init__(self, name: str, included_by: Optional[str] = None, kind: str = "group") -> None:
        label = "dependency group" if kind == "group" else "optional dependency"
        if included_by is None:
            message = f"Failed to find {label} `{name}`"
        else:
            message = f"Failed to find {label} `{name}` included by `{included_by}`"
        super().__init__(message)
        self.name = name
        self.included_by = included_by
        self.kind = kind


class CyclicGroup(GroupError):
    def __init__(self, path: Sequence[str]) -> None:
        self.path = list(path)
        super().__init__(f"Detected a cycle: {self.chain}")

    @property
    def chain(self) -> str:
        return " -> ".join(self.path)


class DuplicateGroupName(GroupError):
    def __init__(self, first: str, second: str, kind: str = "group") -> None:
        label = "Dependency group" if kind == "group" else "Optional dependency"
        super().__init__(f"{label} names `{first}` and `{second}` normalize to the same name")
        self.names = (first, second)
        self.kind = kind


@dataclass
class ResolvedDependencies:
    optional_dependencies: Dict[str, List[str]] = field(default_factory=dict)
    dependency_groups: Dict[str, List[str]] = field(default_factory=dict)


def _index_names(names: Iterable[str], kind: str = "group") -> Dict[str, str]:
    index: Dict[str, str] = {}
    for name in names:
        key = normalize_name(name)
        if key in index:
            raise DuplicateGroupName(index[key], name, kind)
        index[key] = name
    return index


def _written_extras(requirement: str, parsed: Requirement) -> List[str]:
    """Return the extras of ``parsed`` in the order they appear in ``requirement``."""

    declared = {normalize_name(extra) for extra in parsed.extras}
    match = _EXTRAS_RE.match(requirement)
    written = match.group(1).split(",") if match else []
    extras: List[str] = []
    for extra in (item.strip() for item in written):
        key = normalize_name(extra)
        if key in declared:
            declared.discard(key)
            extras.append(extra)
    return extras


def _extend_unique(target: List[str], values: Iterable[str]) -> None:
    for value in values:
        if value not in target:
            target.append(value)


class _Expansion:
    """State for a single resolution call."""

    def __init__(
        self,
        groups: Optional[DependencyGroups],
        project_name: Optional[str],
        optional_dependencies: Optional[Mapping[str, Sequence[str]]],
    ) -> None:
        self.groups = groups or {}
        self.optional_dependencies = optional_dependencies or {}
        self.project_name = normalize_name(project_name) if project_name else None
        self.group_index = _index_names(self.groups)
        self.resolved_groups: Dict[str, List[str]] = {}
        self.resolved_extras: Dict[str, List[str]] = {}
        self.path: List[str] = []
        self._extra_index: Optional[Dict[str, str]] = None

    @property
    def extra_index(self) -> Dict[str, str]:
        # Extras are indexed only once one is looked up.
        if self._extra_index is None:
            self._extra_index = _index_names(self.optional_dependencies, kind="extra")
        return self._extra_index

    def _self_reference(self, requirement: str) -> Optional[List[str]]:
        """Return the extras named by ``requirement`` if it points back at this project."""

        if self.project_name is None:
            return None
        try:
            parsed = Requirement(requirement)
        except InvalidRequirement:
            return None
        if normalize_name(parsed.name) != self.project_name:
            return None
        return _written_extras(requirement, parsed)

    def _enter(self, label: str) -> None:
        if label in self.path:
            raise CyclicGroup(self.path + [label])
        self.path.append(label)

    def _expand_requirement(self, requirement: str, into: List[str]) -> None:
        extras = self._self_reference(requirement)
        if extras is None:
            _extend_unique(into, [requirement])
            return
        for extra in extras:
            _extend_unique(into, self.extra(extra, included_by=self.path[-1] if self.path else None))

    def group(self, name: str, included_by: Optional[str] = None) -> List[str]:
        declared = self.group_index.get(normalize_name(name))
        if declared is None:
            raise UnknownGroup(name, included_by)
        self._enter(declared)
        if declared in self.resolved_groups:
            self.path.pop()
            return self.resolved_groups[declared]

        requirements: List[str] = []
        for entry in self.groups[declared]:
            if isinstance(entry, GroupInclude):
                _extend_unique(requirements, self.group(entry.group, included_by=declared))
            elif isinstance(entry, RequirementEntry):
                self._expand_requirement(entry.requirement, requirements)
            else:
                raise TypeError(f"Unsupported dependency group entry: {entry!r}")

        self.path.pop()
        self.resolved_groups[declared] = requirements
        return requirements

    def extra(self, name: str, included_by: Optional[str] = None) -> List[str]:
        declared = self.extra_index.get(normalize_name(name))
        if declared is None:
            raise UnknownGroup(name, included_by, kind="extra")
        label = f"{self.project_name}[{declared}]" if self.project_name else declared
        self._enter(label)
        if declared in self.resolved_extras:
            self.path.pop()
            return self.resolved_extras[declared]

        requirements: List[str] = []
        for requirement in self.optional_dependencies[declared]:
            self._expand_requirement(requirement, requirements)

        self.path.pop()
        self.resolved_extras[declared] = requirements
        return requirements


def resolve_dependency_groups(
    groups: DependencyGroups,
    requested: Iterable[str],
    *,
    project_name: Optional[str] = None,
    optional_dependencies: Optional[Mapping[str, Sequence[str]]] = None,
) -> List[str]:
    """Expand the ``requested`` groups into one ordered, deduplicated list.

    Group names are matched after normalization. ``include-group`` entries are
    spliced in place. When ``project_name`` is given, requirements on the
    project itself (``spam[test]``) are replaced by the named extras from
    ``optional_dependencies``; otherwise requirement strings are opaque.

    Raises :class:`UnknownGroup`, :class:`CyclicGroup` or
    :class:`DuplicateGroupName`; no partial result is returned.
    """

    expansion = _Expansion(groups, project_name, optional_dependencies)
    resolved: List[str] = []
    for name in requested:
        _extend_unique(resolved, expansion.group(name))
    return resolved


def resolve_optional_dependencies(
    project_name: Optional[str],
    optional_dependencies: Mapping[str, Sequence[str]],
    requested: Iterable[str],
) -> List[str]:
    """Expand extras, following ``project[extra]`` references to the same project."""

    expansion = _Expansion(None, project_name, optional_dependencies)
    resolved: List[str] = []
    for name in requested:
        _extend_unique(resolved, expansion.extra(name))
    return resolved


def resolve_all(
    groups: Optional[DependencyGroups] = None,
    *,
    project_name: Optional[str] = None,
    optional_dependencies: Optional[Mapping[str, Sequence[str]]] = None,
) -> ResolvedDependencies:
    """Resolve every declared extra and dependency group of a document."""

    expansion = _Expansion(groups, project_name, optional_dependencies)
    result = ResolvedDependencies()
    for name in expansion.optional_dependencies:
        result.optional_dependencies[name] = list(expansion.extra(name))
    for name in expansion.groups:
        result.dependency_groups[name] = list(expansion.group(name))
    return result
