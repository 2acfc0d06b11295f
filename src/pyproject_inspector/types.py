from __future__ import annotations

"""Shared data structures for project metadata inspection.

The definitions live in domain-focused modules; this module re-exports them so
callers have a single stable import path.
"""

from .types_groups import (
    DependencyGroups,
    GroupEntry,
    GroupInclude,
    RequirementEntry,
    group_entry_from_toml,
    normalize_name,
)
from .types_license import LicenseExpression, LicenseField, LicenseTable, license_field_from_toml
from .types_report import Finding, InspectionReport

__all__ = [
    "DependencyGroups",
    "Finding",
    "GroupEntry",
    "GroupInclude",
    "InspectionReport",
    "LicenseExpression",
    "LicenseField",
    "LicenseTable",
    "RequirementEntry",
    "group_entry_from_toml",
    "license_field_from_toml",
    "normalize_name",
]
