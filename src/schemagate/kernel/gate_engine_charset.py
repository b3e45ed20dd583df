"""Gate 2: storage engine and character set compliance.

Explicitly non-compliant values and values left to the server default get
distinct codes and messages.
"""

from typing import List, Optional

from schemagate.codes import GateStatus, ViolationCode
from schemagate.contracts import GateResult, Violation

from .model import GateInput, TableDefinition

GATE_NAME = "engine_charset"

REQUIRED_ENGINE = "innodb"
REQUIRED_CHARSET = "utf8mb4"
LEGACY_UTF8 = {"utf8", "utf8mb3"}
SUBOPTIMAL_COLLATIONS = {"utf8mb4_general_ci"}
RECOMMENDED_COLLATIONS = ("utf8mb4_0900_ai_ci", "utf8mb4_unicode_ci")


def _charset_message(subject: str, charset: str) -> str:
    if charset.lower() in LEGACY_UTF8:
        return (
            f"{subject} uses charset {charset}, the legacy 3-byte utf8 alias; "
            "4-byte characters (emoji, some CJK) are rejected or truncated"
        )
    return f"{subject} uses charset {charset}; only utf8mb4 is compliant"


def _charset_code(charset: str) -> ViolationCode:
    if charset.lower() in LEGACY_UTF8:
        return ViolationCode.CHARSET_LEGACY_UTF8
    return ViolationCode.CHARSET_NOT_UTF8MB4


def check_table(table: TableDefinition, require_explicit_charset: bool = False) -> List[Violation]:
    violations: List[Violation] = []
    path = table.source_artifact
    line = table.line
    subject = f"table '{table.name}'"

    def add(code: ViolationCode, message: str, suggestion: Optional[str], at: Optional[int] = None) -> None:
        violations.append(Violation.build(GATE_NAME, code, path, at if at is not None else line, message, suggestion))

    if table.engine is None:
        add(
            ViolationCode.ENGINE_UNSPECIFIED,
            f"{subject} declares no ENGINE and relies on server default",
            "add ENGINE=InnoDB",
        )
    elif table.engine.lower() != REQUIRED_ENGINE:
        add(
            ViolationCode.ENGINE_NOT_INNODB,
            f"{subject} uses engine {table.engine}; only InnoDB is compliant "
            "(transactions, row locking, crash recovery)",
            f"ALTER TABLE {table.name} ENGINE=InnoDB",
        )

    if table.charset is None:
        if require_explicit_charset:
            add(
                ViolationCode.CHARSET_UNSPECIFIED,
                f"{subject} declares no CHARSET and relies on server default",
                "add DEFAULT CHARSET=utf8mb4",
            )
    elif table.charset.lower() != REQUIRED_CHARSET:
        add(
            _charset_code(table.charset),
            _charset_message(subject, table.charset),
            f"ALTER TABLE {table.name} CONVERT TO CHARACTER SET utf8mb4",
        )

    if table.collation is not None:
        collation = table.collation.lower()
        if collation in SUBOPTIMAL_COLLATIONS:
            add(
                ViolationCode.COLLATION_SUBOPTIMAL,
                f"{subject} uses collation {table.collation}, which sorts and compares less accurately",
                f"use COLLATE={RECOMMENDED_COLLATIONS[0]} (MySQL 8) or COLLATE={RECOMMENDED_COLLATIONS[1]}",
            )
        elif not collation.startswith(REQUIRED_CHARSET + "_"):
            add(
                ViolationCode.COLLATION_CHARSET_MISMATCH,
                f"{subject} uses collation {table.collation}, which does not belong to utf8mb4",
                f"use COLLATE={RECOMMENDED_COLLATIONS[0]}",
            )

    for column in table.columns:
        if column.charset and column.charset.lower() != REQUIRED_CHARSET:
            add(
                ViolationCode.COLUMN_CHARSET_OVERRIDE,
                _charset_message(f"column '{table.name}.{column.name}'", column.charset),
                "drop the column-level CHARACTER SET or set it to utf8mb4",
                column.line,
            )
    return violations


def evaluate(gate_input: GateInput) -> GateResult:
    violations: List[Violation] = []
    for table in gate_input.tables:
        violations.extend(check_table(table, gate_input.require_explicit_charset))
    return GateResult(
        gate=GATE_NAME,
        status=GateStatus.FAIL if violations else GateStatus.PASS,
        violations=violations,
    )
