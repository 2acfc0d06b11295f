from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

try:  # Optional dependency so we can still run without settings files
    import yaml
except Exception:  # pragma: no cover - exercised when PyYAML is missing
    yaml = None

SETTINGS_ENV_VAR = "PYPROJECT_INSPECTOR_SETTINGS"


class SettingsError(ValueError):
    """Raised when a settings file cannot be read as a YAML mapping."""


@dataclass
class InspectorSettings:
    """Knobs for how strictly a project document is inspected."""

    allow_license_refs: bool = True
    allow_deprecated_licenses: bool = True
    extra_license_ids: List[str] = field(default_factory=list)
    extra_exception_ids: List[str] = field(default_factory=list)
    default_groups: List[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "allow_license_refs": self.allow_license_refs,
            "allow_deprecated_licenses": self.allow_deprecated_licenses,
            "extra_license_ids": self.extra_license_ids,
            "extra_exception_ids": self.extra_exception_ids,
            "default_groups": self.default_groups,
        }


def _load_yaml(path: Path) -> dict:
    if yaml is None:
        raise RuntimeError("PyYAML is required to load settings files. Install with `pip install pyyaml`.")
    try:
        raw = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise SettingsError(f"{path}: invalid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise SettingsError(f"{path}: expected a mapping at the top level")
    return raw


def _as_list(value: object) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value]


def load_settings(path: Path) -> InspectorSettings:
    raw = _load_yaml(path)
    defaults = InspectorSettings()
    return InspectorSettings(
        allow_license_refs=bool(raw.get("allow_license_refs", defaults.allow_license_refs)),
        allow_deprecated_licenses=bool(
            raw.get("allow_deprecated_licenses", defaults.allow_deprecated_licenses)
        ),
        extra_license_ids=_as_list(raw.get("extra_license_ids")),
        extra_exception_ids=_as_list(raw.get("extra_exception_ids")),
        default_groups=_as_list(raw.get("default_groups")),
    )


def resolve_settings(path: Optional[str] = None) -> InspectorSettings:
    """Load settings from ``path``, the environment, or fall back to defaults."""

    candidate = path or os.environ.get(SETTINGS_ENV_VAR)
    if not candidate:
        return InspectorSettings()
    return load_settings(Path(candidate))
