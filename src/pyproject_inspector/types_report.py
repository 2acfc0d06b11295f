from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from .settings import InspectorSettings


@dataclass
class Finding:
    message: str
    severity: str = "high"
    code: str | None = None
    field: str | None = None
    position: Optional[int] = None


@dataclass
class InspectionReport:
    source: str
    findings: List[Finding]
    generated_at: datetime
    project_name: Optional[str] = None
    license: Optional[str] = None
    license_files: List[str] = field(default_factory=list)
    requested_groups: List[str] = field(default_factory=list)
    resolved_requirements: List[str] = field(default_factory=list)
    settings: InspectorSettings = field(default_factory=InspectorSettings)

    @property
    def passed(self) -> bool:
        return not any(finding.severity == "high" for finding in self.findings)

    @property
    def summary(self) -> Dict[str, int]:
        """Count findings per severity for dashboards/CI."""

        buckets = {"high": 0, "medium": 0, "low": 0}
        for finding in self.findings:
            buckets[finding.severity] = buckets.get(finding.severity, 0) + 1
        return buckets
