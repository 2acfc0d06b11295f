from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional

from .group_resolver import (
    CyclicGroup,
    DuplicateGroupName,
    GroupError,
    UnknownGroup,
    resolve_all,
    resolve_dependency_groups,
)
from .license_expression import LicenseError, LicenseExpressionValidator
from .license_glob import GlobError, validate_license_glob
from .pyproject import Project, PyProjectToml
from .settings import InspectorSettings
from .types import Finding, InspectionReport, LicenseExpression, LicenseTable


def _group_finding(exc: GroupError) -> Finding:
    field = "dependency-groups"
    if isinstance(exc, CyclicGroup):
        code = "CYCLIC_GROUP"
    elif isinstance(exc, UnknownGroup):
        code = "UNKNOWN_EXTRA" if exc.kind == "extra" else "UNKNOWN_GROUP"
        if exc.kind == "extra":
            field = "project.optional-dependencies"
    elif isinstance(exc, DuplicateGroupName):
        code = "DUPLICATE_EXTRA" if exc.kind == "extra" else "DUPLICATE_GROUP"
        if exc.kind == "extra":
            field = "project.optional-dependencies"
    else:
        code = "GROUP_ERROR"
    return Finding(str(exc), severity="high", code=code, field=field)


def _license_findings(project: Project, validator: LicenseExpressionValidator) -> List[Finding]:
    findings: List[Finding] = []
    if isinstance(project.license, LicenseExpression):
        try:
            validator.validate(project.license.expression)
        except LicenseError as exc:
            findings.append(
                Finding(str(exc), severity="high", code=exc.code, field="project.license", position=exc.position)
            )
    elif isinstance(project.license, LicenseTable):
        findings.append(
            Finding(
                "The license table is deprecated; declare an SPDX expression instead",
                severity="low",
                code="LEGACY_LICENSE_TABLE",
                field="project.license",
            )
        )
        if project.license_files is not None:
            findings.append(
                Finding(
                    "license-files cannot be combined with a license table",
                    severity="medium",
                    code="LICENSE_FILES_WITH_LEGACY_LICENSE",
                    field="project.license-files",
                )
            )

    for index, pattern in enumerate(project.license_files or []):
        try:
            validate_license_glob(pattern)
        except GlobError as exc:
            findings.append(
                Finding(
                    str(exc),
                    severity="high",
                    code=exc.code,
                    field=f"project.license-files[{index}]",
                    position=exc.position,
                )
            )
    return findings


def _describe_license(project: Optional[Project]) -> Optional[str]:
    if project is None or project.license is None:
        return None
    if isinstance(project.license, LicenseExpression):
        return project.license.expression
    if project.license.file:
        return f"file: {project.license.file}"
    return "text"


def inspect_pyproject(
    pyproject: PyProjectToml,
    settings: InspectorSettings | None = None,
    groups: Iterable[str] = (),
    generated_at: datetime | None = None,
) -> InspectionReport:
    """Validate licensing fields and dependency groups of one document."""

    settings = settings or InspectorSettings()
    project = pyproject.project
    findings: List[Finding] = []

    if project is not None:
        findings.extend(_license_findings(project, LicenseExpressionValidator.from_settings(settings)))

    project_name = project.name if project else None
    optional = project.optional_dependencies if project else None
    requested = list(groups) or list(settings.default_groups)
    resolved: List[str] = []
    try:
        resolve_all(pyproject.dependency_groups, project_name=project_name, optional_dependencies=optional)
        if requested:
            resolved = resolve_dependency_groups(
                pyproject.dependency_groups or {},
                requested,
                project_name=project_name,
                optional_dependencies=optional,
            )
    except GroupError as exc:
        findings.append(_group_finding(exc))

    return InspectionReport(
        source=pyproject.source,
        findings=findings,
        generated_at=generated_at or datetime.now(timezone.utc),
        project_name=project_name,
        license=_describe_license(project),
        license_files=list(project.license_files or []) if project else [],
        requested_groups=requested,
        resolved_requirements=resolved,
        settings=settings,
    )
