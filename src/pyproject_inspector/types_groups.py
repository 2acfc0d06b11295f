from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Union

from packaging.utils import canonicalize_name


@dataclass(frozen=True)
class RequirementEntry:
    """A dependency specifier, kept verbatim."""

    requirement: str


@dataclass(frozen=True)
class GroupInclude:
    """An ``{include-group = "..."}`` entry."""

    group: str


GroupEntry = Union[RequirementEntry, GroupInclude]
DependencyGroups = Dict[str, List[GroupEntry]]


def normalize_name(name: str) -> str:
    """Normalize an extra or group name.

    Lower-cases the name and collapses every run of ``.``, ``-`` and ``_`` into a
    single ``-``, so ``Test_Utils`` and ``test.utils`` compare equal.
    """

    return str(canonicalize_name(name))


def group_entry_from_toml(value: object) -> GroupEntry:
    if isinstance(value, str):
        return RequirementEntry(value)
    if isinstance(value, dict):
        if set(value) != {"include-group"}:
            keys = ", ".join(sorted(str(key) for key in value)) or "none"
            raise ValueError(f"expected a single 'include-group' key, got: {keys}")
        group = value["include-group"]
        if not isinstance(group, str):
            raise ValueError("'include-group' must be a string")
        return GroupInclude(group)
    raise ValueError(f"expected a string or an include-group table, got {type(value).__name__}")
