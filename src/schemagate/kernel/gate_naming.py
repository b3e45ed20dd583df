"""Gate 1: schema naming.

Every table, column, index and constraint name must be snake_case
(``[a-z0-9_]`` only) and must not collide with a reserved word. A name that
breaks both rules yields two violations.
"""

import re
from typing import List, Optional, Set, Tuple

from schemagate.codes import GateStatus, ViolationCode
from schemagate.contracts import GateResult, Violation

from .model import GateInput, Identifier, IdentifierKind
from .reserved_words import ReservedWordRegistry

GATE_NAME = "naming"

_VALID_NAME_RE = re.compile(r"^[a-z0-9_]+$")
_ACRONYM_BOUNDARY_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CASE_BOUNDARY_RE = re.compile(r"([a-z0-9])([A-Z])")
_INVALID_CHAR_RE = re.compile(r"[^A-Za-z0-9_]")


def to_snake_case(name: str) -> str:
    """``UserOrders`` -> ``user_orders``, ``HTTPRequestLog`` -> ``http_request_log``.

    Characters outside ``[A-Za-z0-9_]`` become ``_``; repeated and
    surrounding underscores collapse.
    """
    text = _ACRONYM_BOUNDARY_RE.sub(r"\1_\2", name)
    text = _CASE_BOUNDARY_RE.sub(r"\1_\2", text)
    text = _INVALID_CHAR_RE.sub("_", text).lower()
    text = re.sub(r"_+", "_", text).strip("_")
    return text


def pluralize(name: str) -> str:
    if re.search(r"[^aeiou]y$", name):
        return name[:-1] + "ies"
    if re.search(r"(s|x|z|ch|sh)$", name):
        return name + "es"
    return name + "s"


def _candidates(name: str, kind: IdentifierKind) -> List[str]:
    if kind == IdentifierKind.TABLE:
        return [pluralize(name), f"{name}_table", f"tbl_{name}"]
    if kind == IdentifierKind.COLUMN:
        return [f"{name}_name", f"{name}_value", f"{name}_col"]
    if kind == IdentifierKind.INDEX:
        return [f"idx_{name}", f"{name}_idx", f"ix_{name}"]
    return [f"con_{name}", f"{name}_constraint", f"ck_{name}"]


def suggest_alternative(name: str, kind: IdentifierKind, registry: ReservedWordRegistry) -> str:
    """First alternative that is itself valid and not reserved."""
    base = to_snake_case(name) or "unnamed"
    for candidate in _candidates(base, kind):
        if _VALID_NAME_RE.match(candidate) and not registry.lookup(candidate):
            return candidate
    return f"{base}_{kind.value}"


def suggest_rename(name: str, kind: IdentifierKind, registry: ReservedWordRegistry) -> Optional[str]:
    """snake_case rewrite of `name` that also avoids reserved words."""
    snake = to_snake_case(name)
    if not snake:
        return None
    if registry.lookup(snake):
        return suggest_alternative(snake, kind, registry)
    return snake


def _subjects(gate_input: GateInput) -> List[Identifier]:
    """Identifiers plus table definitions that have no table identifier of their own."""
    subjects: List[Identifier] = []
    seen: Set[Tuple[str, str, str, Optional[int]]] = set()
    for ident in gate_input.identifiers:
        key = (ident.name, ident.kind.value, ident.source_artifact, ident.source_line)
        if key in seen:
            continue
        seen.add(key)
        subjects.append(ident)
    named_tables = {
        (i.name, i.source_artifact) for i in subjects if i.kind == IdentifierKind.TABLE
    }
    for table in gate_input.tables:
        if (table.name, table.source_artifact) not in named_tables:
            named_tables.add((table.name, table.source_artifact))
            subjects.append(Identifier(
                name=table.name,
                kind=IdentifierKind.TABLE,
                source_artifact=table.source_artifact,
                source_line=table.line,
            ))
    return subjects


def _describe(ident: Identifier) -> str:
    if ident.table and ident.kind != IdentifierKind.TABLE:
        return f"{ident.kind.value} '{ident.table}.{ident.name}'"
    return f"{ident.kind.value} '{ident.name}'"


def check_identifier(ident: Identifier, registry: ReservedWordRegistry) -> List[Violation]:
    violations: List[Violation] = []
    if not _VALID_NAME_RE.match(ident.name):
        rename = suggest_rename(ident.name, ident.kind, registry)
        violations.append(Violation.build(
            GATE_NAME,
            ViolationCode.NAMING_INVALID_CHARACTERS,
            ident.source_artifact,
            ident.source_line,
            f"{_describe(ident)} is not snake_case: only [a-z0-9_] is allowed",
            f"rename to '{rename}'" if rename else None,
        ))
    if registry.lookup(ident.name):
        alternative = suggest_alternative(ident.name, ident.kind, registry)
        violations.append(Violation.build(
            GATE_NAME,
            ViolationCode.NAMING_RESERVED_WORD,
            ident.source_artifact,
            ident.source_line,
            f"{_describe(ident)} is a MySQL reserved word and must be quoted everywhere it is used",
            f"rename to '{alternative}'",
        ))
    return violations


def evaluate(gate_input: GateInput) -> GateResult:
    registry = gate_input.registry or ReservedWordRegistry.builtin()
    violations: List[Violation] = []
    for ident in _subjects(gate_input):
        violations.extend(check_identifier(ident, registry))
    return GateResult(
        gate=GATE_NAME,
        status=GateStatus.FAIL if violations else GateStatus.PASS,
        violations=violations,
        notes=[registry.describe()],
    )
