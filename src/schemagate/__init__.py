"""schemagate: quality gates for MySQL schemas and migrations."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("schemagate")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from schemagate.api import locate, validate_repository, validate_snapshot
from schemagate.codes import GateStatus, Mode, Severity, ViolationCode
from schemagate.config import GateConfig
from schemagate.contracts import GateResult, RemediationItem, ValidationReport, Violation
from schemagate.errors import DiscoveryEmpty, InvocationError, SchemaGateError

__all__ = [
    "__version__",
    "locate",
    "validate_repository",
    "validate_snapshot",
    "GateConfig",
    "GateResult",
    "GateStatus",
    "Mode",
    "RemediationItem",
    "Severity",
    "ValidationReport",
    "Violation",
    "ViolationCode",
    "DiscoveryEmpty",
    "InvocationError",
    "SchemaGateError",
]
