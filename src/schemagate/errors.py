"""Exceptions raised by schemagate.

Gate violations are not exceptions: they are data on GateResult. These types
cover the conditions that stop a run (InvocationError, DiscoveryEmpty) or
skip one gate (GatePreconditionError).
"""

from typing import List, Optional, Sequence


class SchemaGateError(Exception):
    """Base class for all schemagate errors."""


class InvocationError(SchemaGateError, ValueError):
    """Conflicting or missing arguments, invalid root, unreadable snapshot."""


class DiscoveryEmpty(SchemaGateError, FileNotFoundError):
    """No discovery strategy found any schema artifact under the root."""

    def __init__(self, root: str, searched: Sequence[str]):
        self.root = root
        self.searched: List[str] = list(searched)
        super().__init__(self.guidance())

    def guidance(self) -> str:
        lines = [f"No MySQL schema artifacts found under {self.root}.", "Searched for:"]
        lines.extend(f"  - {location}" for location in self.searched)
        lines.append(
            "Commit a schema dump or migrations, or pass --snapshot / --fallback-snapshot "
            "with a live-schema snapshot."
        )
        return "\n".join(lines)


class GatePreconditionError(SchemaGateError):
    """A gate's required input is malformed; the gate is skipped with this reason."""

    def __init__(self, gate: str, reason: str, path: Optional[str] = None):
        self.gate = gate
        self.reason = reason
        self.path = path
        super().__init__(f"{gate}: {reason}")
