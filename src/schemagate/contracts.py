"""Public result models for schemagate.

These are the stable shapes a CI integration or renderer builds on.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, computed_field

from schemagate.codes import GateStatus, Mode, Severity, ViolationCode, severity_for
from schemagate.kernel.exit_policy import exit_code_for, overall_status
from schemagate._internal.report_contract import CANONICALIZATION_POLICY_ID, REPORT_SCHEMA_VERSION


class Violation(BaseModel):
    """One located, actionable rule breach."""
    gate: str
    artifact_path: str
    line: Optional[int] = None
    message: str
    suggestion: Optional[str] = None
    code: ViolationCode
    severity: Severity

    @classmethod
    def build(
        cls,
        gate: str,
        code: ViolationCode,
        artifact_path: str,
        line: Optional[int],
        message: str,
        suggestion: Optional[str] = None,
    ) -> "Violation":
        """Create a violation with the severity class registered for `code`."""
        return cls(
            gate=gate,
            artifact_path=artifact_path,
            line=line,
            message=message,
            suggestion=suggestion,
            code=code,
            severity=severity_for(code),
        )

    def to_contract(self) -> Dict:
        return {
            "path": self.artifact_path,
            "line": self.line,
            "message": self.message,
            "suggestion": self.suggestion,
            "code": self.code.value,
            "severity": self.severity.value,
        }


class GateResult(BaseModel):
    """Outcome of one gate. skip_reason is set iff status is SKIP."""
    gate: str
    status: GateStatus
    violations: List[Violation] = Field(default_factory=list)
    skip_reason: Optional[str] = None
    notes: List[str] = Field(default_factory=list)  # disclosures, e.g. "reserved-word list is non-exhaustive"

    def to_contract(self) -> Dict:
        return {
            "gate": self.gate,
            "status": self.status.value,
            "skip_reason": self.skip_reason,
            "violations": [v.to_contract() for v in self.violations],
            "notes": list(self.notes),
        }


class ArtifactRef(BaseModel):
    """A discovered artifact as listed in the report."""
    path: str
    kind: str  # "schema_dump" | "migration" | "orm_schema"
    strategy: str
    rollback: Optional[str] = None


class ParseNoteRef(BaseModel):
    path: str
    line: Optional[int] = None
    message: str


class Signal(BaseModel):
    """Informational repository signal (e.g. a MySQL service in docker-compose)."""
    path: str
    kind: str
    detail: str


class RemediationItem(BaseModel):
    severity: Severity
    gate: str
    path: str
    line: Optional[int] = None
    code: ViolationCode
    action: str


class ValidationReport(BaseModel):
    """Aggregated result of one run.

    `violations` is the flattened list across gates, ordered by
    (path, line, gate declaration order). `remediation` is empty unless the
    run failed.
    """
    mode: Mode
    results: List[GateResult]
    violations: List[Violation] = Field(default_factory=list)
    remediation: List[RemediationItem] = Field(default_factory=list)
    source: str = "repository"  # "repository" | "snapshot"
    artifacts: List[ArtifactRef] = Field(default_factory=list)
    parse_notes: List[ParseNoteRef] = Field(default_factory=list)
    signals: List[Signal] = Field(default_factory=list)

    @computed_field
    @property
    def overall_status(self) -> GateStatus:
        return overall_status(r.status for r in self.results)

    @computed_field
    @property
    def exit_code(self) -> int:
        return exit_code_for(self.overall_status)

    def get_result(self, gate: str) -> Optional[GateResult]:
        for result in self.results:
            if result.gate == gate:
                return result
        return None

    def summary(self) -> Dict[str, Dict]:
        """Per-gate status and violation count."""
        return {
            r.gate: {"status": r.status.value, "violations": len(r.violations)}
            for r in self.results
        }

    def to_contract(self) -> Dict:
        """Machine-consumable form. Contains no timestamps, so it is byte-stable."""
        return {
            "report_schema_version": REPORT_SCHEMA_VERSION,
            "canonicalization": CANONICALIZATION_POLICY_ID,
            "mode": self.mode.value,
            "source": self.source,
            "overall_status": self.overall_status.value,
            "exit_code": self.exit_code,
            "results": [r.to_contract() for r in self.results],
            "summary": self.summary(),
            "remediation": [
                {
                    "severity": item.severity.value,
                    "gate": item.gate,
                    "path": item.path,
                    "line": item.line,
                    "code": item.code.value,
                    "action": item.action,
                }
                for item in self.remediation
            ],
            "artifacts": [a.model_dump() for a in self.artifacts],
            "parse_notes": [n.model_dump() for n in self.parse_notes],
            "signals": [s.model_dump() for s in self.signals],
        }
