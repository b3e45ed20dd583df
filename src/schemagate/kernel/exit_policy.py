"""Process exit codes. The only place status becomes a side effect for the caller."""

from typing import Iterable

from schemagate.codes import GateStatus

EXIT_PASS = 0
EXIT_FAIL = 1
EXIT_INVOCATION_ERROR = 2


def overall_status(statuses: Iterable[GateStatus]) -> GateStatus:
    """FAIL if any executed gate failed; SKIP never counts; PASS otherwise."""
    for status in statuses:
        if status == GateStatus.FAIL:
            return GateStatus.FAIL
    return GateStatus.PASS


def exit_code_for(status: GateStatus) -> int:
    if status == GateStatus.PASS:
        return EXIT_PASS
    if status == GateStatus.FAIL:
        return EXIT_FAIL
    raise ValueError(f"no exit code for overall status {status.value}")
