"""Tests for the migration hygiene gate."""

from conftest import dump_artifact, gate_input_for, migration_artifact

from schemagate.codes import GateStatus, ViolationCode
from schemagate.kernel import gate_migration
from schemagate.kernel.model import ArtifactKind, SchemaArtifact


def _codes(*artifacts):
    return [v.code for v in gate_migration.evaluate(gate_input_for(*artifacts)).violations]


def test_unguarded_destructive_and_missing_rollback():
    result = gate_migration.evaluate(gate_input_for(
        migration_artifact("ALTER TABLE orders DROP COLUMN legacy_notes;", path="migrations/002_drop_notes.up.sql"),
    ))
    assert result.status == GateStatus.FAIL
    assert [(v.code, v.line) for v in result.violations] == [
        (ViolationCode.UNGUARDED_DESTRUCTIVE, 1),
        (ViolationCode.MISSING_ROLLBACK, None),
    ]
    assert "DROP COLUMN legacy_notes" in result.violations[0].message
    assert "migrations/002_drop_notes.down.sql" in result.violations[1].message


def test_guarded_destructive_with_rollback_passes():
    sql = "-- schemagate: guarded archived to s3 first\nALTER TABLE orders DROP COLUMN legacy_notes;"
    down = "ALTER TABLE orders ADD COLUMN legacy_notes TEXT;"
    assert _codes(migration_artifact(sql, rollback=down)) == []


def test_irreversible_marker_satisfies_rollback():
    sql = "-- schemagate: irreversible lookup data is regenerated nightly\nALTER TABLE a ADD COLUMN b INT, ALGORITHM=INSTANT;"
    assert _codes(migration_artifact(sql)) == []


def test_dml_only_migration_needs_no_rollback():
    assert _codes(migration_artifact("INSERT INTO settings (k, v) VALUES ('a', '1');")) == []


def test_mixed_ddl_and_dml():
    sql = "ALTER TABLE a ADD COLUMN b INT, LOCK=NONE;\nUPDATE a SET b = 1;"
    result = gate_migration.evaluate(gate_input_for(migration_artifact(sql, rollback="ALTER TABLE a DROP COLUMN b;")))
    assert [(v.code, v.line) for v in result.violations] == [(ViolationCode.MIXED_DDL_DML, 2)]


def test_potential_table_lock():
    sql = "ALTER TABLE a ADD COLUMN b INT;\nCREATE INDEX idx_b ON a (b);"
    result = gate_migration.evaluate(gate_input_for(migration_artifact(sql, rollback="ALTER TABLE a DROP COLUMN b;")))
    assert [(v.code, v.line) for v in result.violations] == [
        (ViolationCode.POTENTIAL_TABLE_LOCK, 1),
        (ViolationCode.POTENTIAL_TABLE_LOCK, 2),
    ]


def test_online_annotation_suppresses_lock_warning():
    sql = "-- schemagate: online via pt-online-schema-change\nALTER TABLE a ADD COLUMN b INT;"
    assert _codes(migration_artifact(sql, rollback="ALTER TABLE a DROP COLUMN b;")) == []


def test_table_created_in_same_migration_does_not_lock():
    sql = "CREATE TABLE fresh (id INT PRIMARY KEY);\nCREATE INDEX idx_fresh ON fresh (id);"
    assert _codes(migration_artifact(sql, rollback="DROP TABLE fresh;")) == []


def test_narrowing_against_rollback_type():
    dump = dump_artifact("CREATE TABLE users (id INT PRIMARY KEY, email VARCHAR(100));")
    sql = "ALTER TABLE users MODIFY email VARCHAR(100), ALGORITHM=INPLACE;"
    down = "ALTER TABLE users MODIFY email VARCHAR(255), ALGORITHM=INPLACE;"
    result = gate_migration.evaluate(gate_input_for(dump, migration_artifact(sql, rollback=down)))
    assert [v.code for v in result.violations] == [ViolationCode.UNGUARDED_DESTRUCTIVE]
    assert "VARCHAR(255) to VARCHAR(100)" in result.violations[0].message


def test_dump_type_is_the_final_state_not_the_prior_one():
    dump = dump_artifact("CREATE TABLE users (id INT PRIMARY KEY, name VARCHAR(255));")
    first = migration_artifact(
        "ALTER TABLE users MODIFY name VARCHAR(100), ALGORITHM=INPLACE;",
        path="migrations/001_widen_name.up.sql",
        rollback="ALTER TABLE users MODIFY name VARCHAR(50), ALGORITHM=INPLACE;",
    )
    second = migration_artifact(
        "ALTER TABLE users MODIFY name VARCHAR(255), ALGORITHM=INPLACE;",
        path="migrations/002_widen_name.up.sql",
        rollback="ALTER TABLE users MODIFY name VARCHAR(100), ALGORITHM=INPLACE;",
    )
    result = gate_migration.evaluate(gate_input_for(dump, first, second))
    assert result.status == GateStatus.PASS
    assert result.violations == []


def test_dump_type_still_seeds_unmigrated_columns():
    dump = dump_artifact("CREATE TABLE users (id INT PRIMARY KEY, name VARCHAR(255));")
    types = gate_migration.initial_column_types(gate_input_for(dump))
    assert types == {("users", "id"): "INT", ("users", "name"): "VARCHAR(255)"}


def test_widening_is_not_destructive():
    dump = dump_artifact("CREATE TABLE users (id INT PRIMARY KEY, email VARCHAR(100));")
    sql = "ALTER TABLE users MODIFY email VARCHAR(255), ALGORITHM=INPLACE;"
    assert _codes(dump, migration_artifact(sql, rollback="SELECT 1;")) == []


def test_unknown_prior_type_is_never_narrowing():
    sql = "ALTER TABLE users MODIFY email VARCHAR(10), ALGORITHM=INPLACE;"
    assert _codes(migration_artifact(sql, rollback="SELECT 1;")) == []


def test_types_are_replayed_across_migrations():
    first = migration_artifact(
        "CREATE TABLE users (id INT PRIMARY KEY, email VARCHAR(255));",
        path="migrations/001_users.up.sql",
        rollback="DROP TABLE users;",
    )
    second = migration_artifact(
        "ALTER TABLE users CHANGE email contact VARCHAR(50), ALGORITHM=INPLACE;",
        path="migrations/002_contact.up.sql",
        rollback="SELECT 1;",
    )
    third = migration_artifact(
        "ALTER TABLE users MODIFY contact VARCHAR(40), ALGORITHM=INPLACE;",
        path="migrations/003_contact.up.sql",
        rollback="SELECT 1;",
    )
    result = gate_migration.evaluate(gate_input_for(first, second, third))
    assert [(v.code, v.artifact_path) for v in result.violations] == [
        (ViolationCode.UNGUARDED_DESTRUCTIVE, "migrations/002_contact.up.sql"),
        (ViolationCode.UNGUARDED_DESTRUCTIVE, "migrations/003_contact.up.sql"),
    ]


def test_expected_rollback_per_convention():
    def expected(path, strategy):
        artifact = SchemaArtifact(path=path, kind=ArtifactKind.MIGRATION, raw_text="DROP TABLE a;", strategy=strategy)
        migration = gate_input_for(artifact).migrations[0]
        return gate_migration.expected_rollback(migration)

    assert expected("db/V3__drop.sql", "versioned") == "db/U3__drop.sql"
    assert expected("migrations/2024-01-01_x/up.sql", "paired") == "migrations/2024-01-01_x/down.sql"
    assert expected("db/migrations/20240101000000_x.sql", "timestamped") == "a '-- migrate:down' section"
    assert expected("sql/changes.sql", "changelog") == "'--rollback' statements"


def test_empty_migration_list_passes():
    result = gate_migration.evaluate(gate_input_for(dump_artifact("CREATE TABLE t (id INT PRIMARY KEY);")))
    assert result.status == GateStatus.PASS
