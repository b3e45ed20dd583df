"""Gate 3: antipattern detection.

Five independent checks per table; the name-based ones use the configurable
lexicons, so they are heuristics rather than rules.
"""

from typing import List

from schemagate.codes import GateStatus, ViolationCode
from schemagate.contracts import GateResult, Violation

from .lexicons import Lexicons
from .model import GateInput, TableDefinition
from .types import base_type

GATE_NAME = "antipatterns"


def check_primary_key(table: TableDefinition) -> List[Violation]:
    if table.has_primary_key:
        return []
    return [Violation.build(
        GATE_NAME,
        ViolationCode.MISSING_PRIMARY_KEY,
        table.source_artifact,
        table.line,
        f"table '{table.name}' has no primary key; InnoDB falls back to a hidden row id "
        "and replication/online schema tools cannot address rows",
        "add a key, e.g. id BIGINT UNSIGNED NOT NULL AUTO_INCREMENT PRIMARY KEY",
    )]


def check_enum_misuse(table: TableDefinition, lexicons: Lexicons) -> List[Violation]:
    if not lexicons.is_business_entity(table.name):
        return []
    violations = []
    for column in table.columns:
        if column.is_enum and column.enum_value_count > lexicons.enum_value_limit:
            violations.append(Violation.build(
                GATE_NAME,
                ViolationCode.ENUM_ON_BUSINESS_ENTITY,
                table.source_artifact,
                column.line,
                f"column '{table.name}.{column.name}' is an ENUM with {column.enum_value_count} values "
                f"on business-entity table '{table.name}'; every new value needs an ALTER TABLE",
                f"move the values to a lookup table referenced by a foreign key "
                f"(e.g. {table.name.lower()}_{column.name.lower()})",
            ))
    return violations


def check_float_money(table: TableDefinition, lexicons: Lexicons) -> List[Violation]:
    violations = []
    for column in table.columns:
        if column.is_floating_point and lexicons.is_monetary(column.name):
            violations.append(Violation.build(
                GATE_NAME,
                ViolationCode.FLOAT_MONETARY_COLUMN,
                table.source_artifact,
                column.line,
                f"column '{table.name}.{column.name}' stores money as {base_type(column.declared_type)}; "
                "binary floating point cannot represent most decimal amounts exactly",
                "use a fixed-point type such as DECIMAL(19,4)",
            ))
    return violations


def check_text_prefix_index(table: TableDefinition) -> List[Violation]:
    violations = []
    for index in table.indexes:
        for part in index.columns:
            if part.prefix_length is None:
                continue
            column = table.get_column(part.name)
            if column is None or not column.is_text_or_blob:
                continue
            if index.name:
                label = f"index '{index.name}'"
            else:
                label = "unnamed index" if index.kind == "index" else f"{index.kind} index"
            violations.append(Violation.build(
                GATE_NAME,
                ViolationCode.TEXT_PREFIX_INDEX,
                index.source_artifact or table.source_artifact,
                index.line,
                f"{label} on '{table.name}' uses a {part.prefix_length}-character prefix of "
                f"{base_type(column.declared_type)} column '{column.name}'; prefix indexes cannot "
                "cover queries or support ORDER BY",
                "index a bounded VARCHAR column instead, or a generated hash column for equality lookups",
            ))
    return violations


def check_string_identifier(table: TableDefinition, lexicons: Lexicons) -> List[Violation]:
    violations = []
    for column in table.columns:
        if column.is_string and lexicons.is_identifier_like(column.name):
            violations.append(Violation.build(
                GATE_NAME,
                ViolationCode.STRING_IDENTIFIER_COLUMN,
                table.source_artifact,
                column.line,
                f"column '{table.name}.{column.name}' is named like a key but declared "
                f"{column.declared_type}; comparing it with integer keys forces implicit conversion "
                "and skips indexes",
                "use the referenced key's integer type (e.g. BIGINT UNSIGNED), or BINARY(16) for UUIDs",
            ))
    return violations


def check_table(table: TableDefinition, lexicons: Lexicons) -> List[Violation]:
    violations: List[Violation] = []
    violations.extend(check_primary_key(table))
    violations.extend(check_enum_misuse(table, lexicons))
    violations.extend(check_float_money(table, lexicons))
    violations.extend(check_text_prefix_index(table))
    violations.extend(check_string_identifier(table, lexicons))
    return violations


def evaluate(gate_input: GateInput) -> GateResult:
    lexicons = gate_input.lexicons or Lexicons()
    violations: List[Violation] = []
    for table in gate_input.tables:
        violations.extend(check_table(table, lexicons))
    return GateResult(
        gate=GATE_NAME,
        status=GateStatus.FAIL if violations else GateStatus.PASS,
        violations=violations,
    )
