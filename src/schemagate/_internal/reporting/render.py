"""Report renderers: plain text, markdown and canonical JSON (internal).

Renderers only read the ValidationReport; they never reorder violations.
"""

from typing import List

from schemagate._internal.canonical_json import json_document
from schemagate.codes import GateStatus
from schemagate.contracts import GateResult, ValidationReport, Violation


def _location(violation: Violation) -> str:
    if violation.line is None:
        return violation.artifact_path
    return f"{violation.artifact_path}:{violation.line}"


def _gate_header(result: GateResult) -> str:
    if result.status == GateStatus.SKIP:
        return f"[{result.status.value}] {result.gate} ({result.skip_reason})"
    count = len(result.violations)
    noun = "violation" if count == 1 else "violations"
    return f"[{result.status.value}] {result.gate}: {count} {noun}"


def render_text(report: ValidationReport) -> str:
    """Human-readable report for terminals and CI logs."""
    lines: List[str] = [f"schemagate ({report.mode.value} mode, {report.source})", ""]
    for result in report.results:
        lines.append(_gate_header(result))
        for note in result.notes:
            lines.append(f"  note: {note}")
        for violation in result.violations:
            lines.append(f"  {_location(violation)}: {violation.message} [{violation.code.value}]")
            if violation.suggestion:
                lines.append(f"      suggestion: {violation.suggestion}")
        lines.append("")

    if report.remediation:
        lines.append("Remediation (highest risk first):")
        for idx, item in enumerate(report.remediation, start=1):
            where = item.path if item.line is None else f"{item.path}:{item.line}"
            lines.append(f"  {idx}. [{item.severity.value}] {where}: {item.action}")
        lines.append("")

    if report.parse_notes:
        lines.append(f"Parse notes: {len(report.parse_notes)} input(s) skipped (run with --verbose for details)")
    for signal in report.signals:
        lines.append(f"Signal: {signal.path}: {signal.detail}")

    lines.append(f"Overall: {report.overall_status.value} (exit {report.exit_code})")
    return "\n".join(lines) + "\n"


def render_markdown(report: ValidationReport) -> str:
    """Markdown report, e.g. for a CI job summary or PR comment."""
    lines: List[str] = []
    lines.append("# Schema Quality Gate Report")
    lines.append("")
    lines.append(f"- Overall: **{report.overall_status.value}** (exit {report.exit_code})")
    lines.append(f"- Mode: {report.mode.value}")
    lines.append(f"- Source: {report.source}")
    lines.append(f"- Artifacts analyzed: {len(report.artifacts)}")
    lines.append("")

    lines.append("## Summary")
    lines.append("")
    lines.append("| Gate | Status | Violations |")
    lines.append("|---|---|---|")
    for result in report.results:
        lines.append(f"| {result.gate} | {result.status.value} | {len(result.violations)} |")
    lines.append("")

    for result in report.results:
        lines.append(f"## {result.gate}")
        lines.append("")
        if result.status == GateStatus.SKIP:
            lines.append(f"Skipped: {result.skip_reason}")
            lines.append("")
            continue
        for note in result.notes:
            lines.append(f"> {note}")
            lines.append("")
        if not result.violations:
            lines.append("No violations.")
            lines.append("")
            continue
        for violation in result.violations:
            lines.append(f"- `{_location(violation)}` **{violation.code.value}** ({violation.severity.value}): {violation.message}")
            if violation.suggestion:
                lines.append(f"  - Suggestion: {violation.suggestion}")
        lines.append("")

    if report.remediation:
        lines.append("## Remediation")
        lines.append("")
        for idx, item in enumerate(report.remediation, start=1):
            where = item.path if item.line is None else f"{item.path}:{item.line}"
            lines.append(f"{idx}. **{item.severity.value}** `{where}`: {item.action}")
        lines.append("")

    if report.parse_notes:
        lines.append("## Parse Notes")
        lines.append("")
        for note in report.parse_notes:
            where = note.path if note.line is None else f"{note.path}:{note.line}"
            lines.append(f"- `{where}`: {note.message}")
        lines.append("")

    if report.signals:
        lines.append("## Signals")
        lines.append("")
        for signal in report.signals:
            lines.append(f"- `{signal.path}`: {signal.detail}")
        lines.append("")

    return "\n".join(lines)


def render_json(report: ValidationReport) -> str:
    return json_document(report.to_contract())


RENDERERS = {
    "text": render_text,
    "markdown": render_markdown,
    "json": render_json,
}


def render(report: ValidationReport, fmt: str = "text") -> str:
    try:
        renderer = RENDERERS[fmt]
    except KeyError:
        raise ValueError(f"Unknown report format: {fmt}") from None
    return renderer(report)
