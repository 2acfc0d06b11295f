from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class LicenseExpression:
    """An SPDX license expression as written in ``project.license``."""

    expression: str


@dataclass(frozen=True)
class LicenseTable:
    """Legacy ``project.license`` table: free text or a file path, never both."""

    text: Optional[str] = None
    file: Optional[str] = None

    def __post_init__(self) -> None:
        if self.text is not None and self.file is not None:
            raise ValueError("License table accepts either 'text' or 'file', not both")


LicenseField = Union[LicenseExpression, LicenseTable]


def license_field_from_toml(value: object) -> LicenseField:
    if isinstance(value, str):
        return LicenseExpression(value)
    if not isinstance(value, dict):
        raise ValueError(f"expected a string or a table, got {type(value).__name__}")

    unknown = sorted(set(value) - {"text", "file"})
    if unknown:
        raise ValueError(f"unexpected keys in license table: {', '.join(unknown)}")
    for key in ("text", "file"):
        if key in value and not isinstance(value[key], str):
            raise ValueError(f"license '{key}' must be a string")
    return LicenseTable(text=value.get("text"), file=value.get("file"))
