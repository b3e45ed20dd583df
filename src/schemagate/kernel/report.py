"""Report aggregation: ordering, summary and remediation."""

from typing import Iterable, List, Sequence, Tuple

from schemagate.codes import SEVERITY_RANK, GateStatus, Mode
from schemagate.contracts import (
    ArtifactRef,
    GateResult,
    ParseNoteRef,
    RemediationItem,
    Signal,
    ValidationReport,
    Violation,
)

from .exit_policy import overall_status
from .model import ParseNote, SchemaArtifact


def location_key(violation: Violation) -> Tuple[str, int]:
    """Sort key: path, then line (violations without a line sort first)."""
    return violation.artifact_path, violation.line or 0


def order_result(result: GateResult) -> GateResult:
    return result.model_copy(update={"violations": sorted(result.violations, key=location_key)})


def flatten(results: Sequence[GateResult]) -> List[Violation]:
    """All violations by (path, line, gate declaration order).

    `results` are in declaration order and the sort is stable, so ties on
    (path, line) keep the gate order.
    """
    flat = [v for result in results for v in result.violations]
    flat.sort(key=location_key)
    return flat


def remediation_plan(violations: Sequence[Violation]) -> List[RemediationItem]:
    """Violations ordered data-loss > correctness > style, then report order."""
    ranked = sorted(violations, key=lambda v: SEVERITY_RANK[v.severity])
    return [
        RemediationItem(
            severity=v.severity,
            gate=v.gate,
            path=v.artifact_path,
            line=v.line,
            code=v.code,
            action=v.suggestion or v.message,
        )
        for v in ranked
    ]


def artifact_refs(artifacts: Iterable[SchemaArtifact]) -> List[ArtifactRef]:
    return [
        ArtifactRef(
            path=a.path,
            kind=a.kind.value,
            strategy=a.strategy,
            rollback=a.rollback.path if a.rollback is not None else None,
        )
        for a in artifacts
    ]


def parse_note_refs(notes: Iterable[ParseNote]) -> List[ParseNoteRef]:
    return [ParseNoteRef(path=n.artifact_path, line=n.line, message=n.message) for n in notes]


def aggregate(
    results: Sequence[GateResult],
    mode: Mode,
    source: str = "repository",
    artifacts: Iterable[SchemaArtifact] = (),
    parse_notes: Iterable[ParseNote] = (),
    signals: Iterable[Signal] = (),
) -> ValidationReport:
    """Build the ValidationReport for one run. Same inputs, same report."""
    ordered = [order_result(r) for r in results]
    violations = flatten(ordered)
    failed = overall_status(r.status for r in ordered) == GateStatus.FAIL
    return ValidationReport(
        mode=mode,
        results=ordered,
        violations=violations,
        remediation=remediation_plan(violations) if failed else [],
        source=source,
        artifacts=artifact_refs(artifacts),
        parse_notes=parse_note_refs(parse_notes),
        signals=list(signals),
    )
