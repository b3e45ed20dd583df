"""Gate 4: migration hygiene.

Migrations are evaluated in discovery order. Column types are tracked as the
migrations are replayed so a MODIFY/CHANGE COLUMN can be judged against the
type the column had before it. Dumps and snapshots describe the final state, so
they only seed columns no migration modifies; otherwise the prior type comes
from the replay or from the migration's own rollback. A column whose prior type
is unknown is never reported as narrowed.
"""

import re
from typing import Dict, List, Optional, Set, Tuple

from schemagate.codes import GateStatus, ViolationCode
from schemagate.contracts import GateResult, Violation

from .model import ArtifactKind, GateInput, MigrationFile, Statement, StatementClass, TableDefinition
from .types import is_narrowing

GATE_NAME = "migration_hygiene"

LOCKING_VERBS = ("ALTER TABLE", "CREATE INDEX")

ColumnTypes = Dict[Tuple[str, str], str]


def _key(table: str, column: str) -> Tuple[str, str]:
    return table.lower(), column.lower()


def _record_table(types: ColumnTypes, table: TableDefinition) -> None:
    for column in table.columns:
        types[_key(table.name, column.name)] = column.declared_type


def migrated_columns(gate_input: GateInput) -> Set[Tuple[str, str]]:
    """Columns some migration modifies or renames, under their old and new names."""
    keys: Set[Tuple[str, str]] = set()
    for migration in gate_input.migrations:
        for statement in migration.statements:
            for change in statement.column_changes:
                if change.operation != "add":
                    keys.add(_key(change.table, change.column))
                    keys.add(_key(change.table, change.new_name))
    return keys


def initial_column_types(gate_input: GateInput) -> ColumnTypes:
    """Column types declared outside migrations (schema dumps, ORM schemas, snapshots).

    Those sources hold the state after every migration ran, so columns that a
    migration modifies are left out: their final type says nothing about the
    type the migration started from.
    """
    migration_paths = {m.path for m in gate_input.migrations}
    migrated = migrated_columns(gate_input)
    types: ColumnTypes = {}
    for table in gate_input.tables:
        if table.source_artifact not in migration_paths:
            _record_table(types, table)
    for key in migrated:
        types.pop(key, None)
    return types


def expected_rollback(migration: MigrationFile) -> str:
    """Name of the companion the migration's own convention expects."""
    path = migration.path
    name = path.rsplit("/", 1)[-1]
    directory = path[: -len(name)]
    strategy = migration.up_artifact.strategy
    if name.endswith(".up.sql"):
        return path[: -len(".up.sql")] + ".down.sql"
    if name == "up.sql":
        return directory + "down.sql"
    if strategy == "versioned" or re.match(r"^V[^_]+__", name):
        return directory + "U" + name[1:]
    if strategy == "timestamped":
        return "a '-- migrate:down' section"
    if strategy == "changelog":
        return "'--rollback' statements"
    return "a down migration"


def rollback_type(migration: Optional[MigrationFile], table: str, column: str) -> Optional[str]:
    """Type the migration's rollback restores `table.column` to, if it says."""
    if migration is None:
        return None
    for change in migration.rollback_changes:
        if _key(change.table, change.new_name) == _key(table, column):
            return change.new_type
    return None


def narrowing_changes(
    statement: Statement, types: ColumnTypes, migration: Optional[MigrationFile] = None
) -> List[str]:
    """Describe the column changes of `statement` that narrow a known type."""
    clauses = []
    for change in statement.column_changes:
        if change.operation == "add":
            continue
        old_type = types.get(_key(change.table, change.column))
        if old_type is None:
            old_type = rollback_type(migration, change.table, change.column)
        if old_type is not None and is_narrowing(old_type, change.new_type):
            clauses.append(
                f"{change.operation.upper()} COLUMN {change.column} narrows {old_type} to {change.new_type}"
            )
    return clauses


def _apply_changes(statement: Statement, types: ColumnTypes) -> None:
    for change in statement.column_changes:
        if change.operation != "add":
            types.pop(_key(change.table, change.column), None)
        types[_key(change.table, change.new_name)] = change.new_type


def check_migration(
    migration: MigrationFile,
    types: ColumnTypes,
    created_tables_by_path: Dict[str, List[TableDefinition]],
) -> List[Violation]:
    """Evaluate one migration, updating `types` with its column changes."""
    violations: List[Violation] = []
    path = migration.path
    created: Set[str] = set()
    defined = {t.name.lower(): t for t in created_tables_by_path.get(path, [])}

    for statement in migration.statements:
        clauses = list(statement.destructive_clauses) if statement.classification == StatementClass.DESTRUCTIVE else []
        if not statement.guarded:
            clauses.extend(narrowing_changes(statement, types, migration))
        if clauses:
            violations.append(Violation.build(
                GATE_NAME,
                ViolationCode.UNGUARDED_DESTRUCTIVE,
                path,
                statement.line,
                f"unguarded destructive operation: {'; '.join(clauses)}",
                "confirm a backup or expand/contract plan and annotate the statement with "
                "'-- schemagate: guarded <reason>'",
            ))

        if (
            statement.classification == StatementClass.DDL
            and statement.verb in LOCKING_VERBS
            and not statement.online_hint
            and statement.table is not None
            and statement.table.lower() not in created
        ):
            violations.append(Violation.build(
                GATE_NAME,
                ViolationCode.POTENTIAL_TABLE_LOCK,
                path,
                statement.line,
                f"{statement.verb} on '{statement.table}' has no online-algorithm annotation and may "
                "lock the table for the duration of the change",
                "add ALGORITHM=INPLACE, LOCK=NONE (or ALGORITHM=INSTANT), or run it through an online "
                "schema change tool and annotate '-- schemagate: online gh-ost'",
            ))

        if statement.creates_table and statement.table:
            created.add(statement.table.lower())
            table = defined.get(statement.table.lower())
            if table is not None:
                _record_table(types, table)
        _apply_changes(statement, types)

    if migration.is_schema_mutating() and not migration.has_rollback and not migration.irreversible:
        expected = expected_rollback(migration)
        violations.append(Violation.build(
            GATE_NAME,
            ViolationCode.MISSING_ROLLBACK,
            path,
            None,
            f"schema-mutating migration has no rollback (expected {expected})",
            f"add {expected}, or mark the file '-- schemagate: irreversible <reason>'",
        ))

    ddl = [s for s in migration.statements if s.classification != StatementClass.DML]
    dml = [s for s in migration.statements if s.classification == StatementClass.DML]
    if ddl and dml:
        violations.append(Violation.build(
            GATE_NAME,
            ViolationCode.MIXED_DDL_DML,
            path,
            dml[0].line,
            f"migration mixes {len(ddl)} schema statement(s) with {len(dml)} data statement(s); "
            "a failed data step leaves the schema change applied without its data",
            "split the data change into its own migration",
        ))
    return violations


def evaluate(gate_input: GateInput) -> GateResult:
    types = initial_column_types(gate_input)
    migration_paths = {m.path for m in gate_input.migrations}
    created_tables_by_path: Dict[str, List[TableDefinition]] = {}
    for table in gate_input.tables:
        if table.source_artifact in migration_paths:
            created_tables_by_path.setdefault(table.source_artifact, []).append(table)

    violations: List[Violation] = []
    for migration in gate_input.migrations:
        if migration.up_artifact.kind != ArtifactKind.MIGRATION:
            continue
        violations.extend(check_migration(migration, types, created_tables_by_path))
    return GateResult(
        gate=GATE_NAME,
        status=GateStatus.FAIL if violations else GateStatus.PASS,
        violations=violations,
    )
