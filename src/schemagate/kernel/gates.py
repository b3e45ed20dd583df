"""Rule gate engine.

Gates are pure functions ``(GateInput) -> GateResult`` registered in a fixed
declaration order. The engine owns their execution state
(NOT_RUN -> RUNNING -> PASS | FAIL | SKIP), skips gates whose precondition is
broken or that quick mode excludes, and turns a crash inside one gate into
that gate's own FAIL. Results always come back in declaration order, whether
the gates ran sequentially or on a thread pool.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from schemagate.codes import GateStatus, Mode, ViolationCode
from schemagate.contracts import GateResult, Violation
from schemagate._internal.report_contract import INTERNAL_PATH

from . import gate_antipattern, gate_engine_charset, gate_migration, gate_naming
from .model import GateInput

logger = logging.getLogger(__name__)

QUICK_MODE_REASON = "quick mode"


@dataclass(frozen=True)
class GateSpec:
    """A registered gate."""
    name: str
    evaluate: Callable[[GateInput], GateResult]
    in_quick_mode: bool


DECLARED_GATES: Tuple[GateSpec, ...] = (
    GateSpec(gate_naming.GATE_NAME, gate_naming.evaluate, in_quick_mode=True),
    GateSpec(gate_engine_charset.GATE_NAME, gate_engine_charset.evaluate, in_quick_mode=True),
    GateSpec(gate_antipattern.GATE_NAME, gate_antipattern.evaluate, in_quick_mode=False),
    GateSpec(gate_migration.GATE_NAME, gate_migration.evaluate, in_quick_mode=False),
)

GATE_ORDER: Tuple[str, ...] = tuple(spec.name for spec in DECLARED_GATES)


class GateEngine:
    """Runs the declared gates against one GateInput.

    One engine instance per run; `states` exposes the per-gate execution
    state for inspection after (or during) :meth:`run`.
    """

    def __init__(
        self,
        gates: Tuple[GateSpec, ...] = DECLARED_GATES,
        parallel: bool = False,
        workers: Optional[int] = None,
    ):
        self.gates = gates
        self.parallel = parallel
        self.workers = workers
        self.states: Dict[str, GateStatus] = {spec.name: GateStatus.NOT_RUN for spec in gates}

    def run(self, gate_input: GateInput, mode: Mode = Mode.FULL) -> List[GateResult]:
        if self.parallel and len(self.gates) > 1 and (self.workers is None or self.workers > 1):
            max_workers = min(len(self.gates), self.workers or len(self.gates))
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                return list(executor.map(lambda spec: self._run_gate(spec, gate_input, mode), self.gates))
        return [self._run_gate(spec, gate_input, mode) for spec in self.gates]

    def _run_gate(self, spec: GateSpec, gate_input: GateInput, mode: Mode) -> GateResult:
        if mode == Mode.QUICK and not spec.in_quick_mode:
            return self._finish(spec, skip_result(spec.name, QUICK_MODE_REASON))

        reason = gate_input.preconditions.get(spec.name)
        if reason is not None:
            logger.warning("Skipping gate %s: %s", spec.name, reason)
            return self._finish(spec, skip_result(spec.name, reason))

        self.states[spec.name] = GateStatus.RUNNING
        try:
            result = spec.evaluate(gate_input)
        except Exception as exc:
            logger.exception("Gate %s crashed", spec.name)
            result = crash_result(spec.name, exc)
        return self._finish(spec, result)

    def _finish(self, spec: GateSpec, result: GateResult) -> GateResult:
        self.states[spec.name] = result.status
        logger.debug("Gate %s: %s (%d violations)", spec.name, result.status.value, len(result.violations))
        return result


def skip_result(gate: str, reason: str) -> GateResult:
    return GateResult(gate=gate, status=GateStatus.SKIP, skip_reason=reason)


def crash_result(gate: str, exc: BaseException) -> GateResult:
    """Convert an exception raised inside a gate into that gate's FAIL."""
    return GateResult(
        gate=gate,
        status=GateStatus.FAIL,
        violations=[Violation.build(
            gate,
            ViolationCode.GATE_ERROR,
            INTERNAL_PATH,
            None,
            f"gate '{gate}' crashed: {type(exc).__name__}: {exc}",
            "this is a schemagate bug; the remaining gates ran normally",
        )],
    )


def run_gates(
    gate_input: GateInput,
    mode: Mode = Mode.FULL,
    parallel: bool = False,
    workers: Optional[int] = None,
) -> List[GateResult]:
    """Run every declared gate in `mode` and return results in declaration order."""
    return GateEngine(parallel=parallel, workers=workers).run(gate_input, mode)
