from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from jinja2 import Environment, select_autoescape

from .types import InspectionReport


env = Environment(autoescape=select_autoescape(["html", "xml"]))


def _finding_rows(report: InspectionReport) -> Iterable[dict]:
    for finding in report.findings:
        yield {
            "field": finding.field or "-",
            "code": finding.code or "-",
            "severity": finding.severity,
            "position": finding.position,
            "message": finding.message,
        }


def render_json(report: InspectionReport) -> str:
    payload = {
        "source": report.source,
        "generated_at": report.generated_at.isoformat(),
        "project": report.project_name,
        "passed": report.passed,
        "summary": report.summary,
        "license": report.license,
        "license_files": report.license_files,
        "requested_groups": report.requested_groups,
        "resolved_requirements": report.resolved_requirements,
        "settings": report.settings.as_dict(),
        "findings": list(_finding_rows(report)),
    }
    return json.dumps(payload, indent=2)


def render_markdown(report: InspectionReport) -> str:
    lines = [
        "# Project Metadata Report",
        "",
        f"Source: {report.source}",
        f"Generated at: {report.generated_at.isoformat()}",
        f"Project: {report.project_name or 'unnamed'}",
        f"License: {report.license or 'undeclared'}",
        f"Status: {'passed' if report.passed else 'failed'}",
    ]

    lines.append("\n## Findings\n")
    if report.findings:
        lines.append("| Field | Code | Severity | Position | Message |")
        lines.append("| --- | --- | --- | --- | --- |")
        for row in _finding_rows(report):
            position = row["position"] if row["position"] is not None else "-"
            lines.append(
                f"| {row['field']} | {row['code']} | {row['severity']} | {position} | {row['message']} |"
            )
    else:
        lines.append("None")

    if report.requested_groups:
        lines.append("\n## Resolved dependency groups\n")
        lines.append(f"Groups: {', '.join(report.requested_groups)}")
        lines.append("")
        for requirement in report.resolved_requirements:
            lines.append(f"- `{requirement}`")

    return "\n".join(lines)


def render_html(report: InspectionReport) -> str:
    template = env.from_string(
        """
<!doctype html>
<html lang=\"en\">
<head>
  <meta charset=\"utf-8\" />
  <title>Project Metadata Report</title>
  <style>
    body { font-family: Arial, sans-serif; margin: 2rem; }
    h1, h2 { color: #1f2937; }
    table { border-collapse: collapse; width: 100%; margin-bottom: 1.5rem; }
    th, td { border: 1px solid #d1d5db; padding: 0.5rem; }
    th { background: #f3f4f6; text-align: left; }
    .badge { display: inline-block; padding: 0.35rem 0.6rem; border-radius: 0.4rem; font-weight: 600; color: #111827; }
    .badge.good { background: #d1fae5; color: #065f46; }
    .badge.bad { background: #fee2e2; color: #991b1b; }
    .badge.sev-high { background: #fee2e2; color: #991b1b; }
    .badge.sev-medium { background: #fef3c7; color: #92400e; }
    .badge.sev-low { background: #e0f2fe; color: #0369a1; }
  </style>
</head>
<body>
  <h1>Project Metadata Report</h1>
  <p>Source: {{ source }}</p>
  <p>Generated at: {{ generated_at }}</p>
  <p>Project: {{ project or "unnamed" }} &middot; License: {{ license or "undeclared" }}</p>
  <p>Status: <span class=\"badge {{ 'good' if passed else 'bad' }}\">{{ 'passed' if passed else 'failed' }}</span></p>
  <section>
    <h2>Findings</h2>
    {% if findings %}
    <table>
      <thead><tr><th>Field</th><th>Code</th><th>Severity</th><th>Position</th><th>Message</th></tr></thead>
      <tbody>
        {% for row in findings %}
        <tr>
          <td>{{ row.field }}</td>
          <td>{{ row.code }}</td>
          <td><span class=\"badge sev-{{ row.severity }}\">{{ row.severity.title() }}</span></td>
          <td>{{ row.position if row.position is not none else "-" }}</td>
          <td>{{ row.message }}</td>
        </tr>
        {% endfor %}
      </tbody>
    </table>
    {% else %}
    <p>None</p>
    {% endif %}
  </section>
  {% if requested_groups %}
  <section>
    <h2>Resolved dependency groups</h2>
    <p>Groups: {{ ", ".join(requested_groups) }}</p>
    <ul>
      {% for requirement in resolved_requirements %}
      <li><code>{{ requirement }}</code></li>
      {% endfor %}
    </ul>
  </section>
  {% endif %}
</body>
</html>
"""
    )

    return template.render(
        source=report.source,
        generated_at=report.generated_at.isoformat(),
        project=report.project_name,
        license=report.license,
        passed=report.passed,
        findings=list(_finding_rows(report)),
        requested_groups=report.requested_groups,
        resolved_requirements=report.resolved_requirements,
    )


def render_report(report: InspectionReport, fmt: str) -> str:
    fmt = fmt.lower()
    if fmt == "json":
        return render_json(report)
    if fmt in {"md", "markdown"}:
        return render_markdown(report)
    if fmt == "html":
        return render_html(report)
    raise ValueError(f"Unknown report format: {fmt}")


def write_report(report: InspectionReport, fmt: str, destination: Path | None) -> str:
    output = render_report(report, fmt)
    if destination:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(output)
    return output
