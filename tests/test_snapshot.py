"""Tests for live-schema snapshot input."""

import json

import pytest

from schemagate import GateStatus, InvocationError, validate_repository, validate_snapshot
from schemagate._internal.io.snapshot import load_snapshot, parse_snapshot, snapshot_to_extraction


def _clean_table(**overrides):
    table = {
        "name": "customers",
        "engine": "InnoDB",
        "charset": "utf8mb4",
        "collation": "utf8mb4_0900_ai_ci",
        "columns": [{"name": "id", "type": "BIGINT UNSIGNED"}, {"name": "email", "type": "VARCHAR(255)"}],
        "indexes": [{"kind": "primary", "columns": [{"name": "id"}]}],
    }
    table.update(overrides)
    return table


def test_primary_key_derived_from_index():
    snapshot = parse_snapshot({"tables": [_clean_table(), _clean_table(name="audit_log", indexes=[])]})
    tables = snapshot_to_extraction(snapshot).tables
    assert [t.has_primary_key for t in tables] == [True, False]
    assert tables[0].source_artifact == "<snapshot>"


def test_explicit_has_primary_key_wins():
    snapshot = parse_snapshot({"tables": [_clean_table(indexes=[], has_primary_key=True)]})
    assert snapshot_to_extraction(snapshot).tables[0].has_primary_key


def test_unknown_field_rejected():
    with pytest.raises(InvocationError):
        parse_snapshot({"tables": [_clean_table(row_count=10)]})


def test_non_object_rejected():
    with pytest.raises(InvocationError):
        parse_snapshot(["customers"])


def test_load_snapshot_errors(tmp_path):
    with pytest.raises(InvocationError):
        load_snapshot(tmp_path / "missing.json")
    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(InvocationError):
        load_snapshot(broken)


def test_clean_snapshot_passes():
    report = validate_snapshot({"tables": [_clean_table()]})
    assert report.source == "snapshot"
    assert report.overall_status == GateStatus.PASS
    assert report.exit_code == 0
    assert report.remediation == []


def test_snapshot_gates_match_file_gates():
    report = validate_snapshot({"tables": [_clean_table(name="Orders", engine="MyISAM", charset="utf8")]})
    codes = {v.code.value for v in report.violations}
    assert {"NAMING_INVALID_CHARACTERS", "ENGINE_NOT_INNODB", "CHARSET_LEGACY_UTF8"} <= codes
    assert all(v.artifact_path == "<snapshot>" for v in report.violations)


def test_snapshot_migrations_replay_against_tables():
    report = validate_snapshot({
        "tables": [_clean_table()],
        "migrations": [{
            "path": "20240101000000_narrow_email.sql",
            "up_sql": "ALTER TABLE customers MODIFY COLUMN email VARCHAR(50);",
            "down_sql": "ALTER TABLE customers MODIFY COLUMN email VARCHAR(255);",
        }],
    })
    hygiene = report.get_result("migration_hygiene")
    assert hygiene.status == GateStatus.FAIL
    assert {v.code.value for v in hygiene.violations} == {"UNGUARDED_DESTRUCTIVE", "POTENTIAL_TABLE_LOCK"}
    assert [a.path for a in report.artifacts] == ["20240101000000_narrow_email.sql"]


def test_snapshot_from_file_uses_file_name(tmp_path):
    path = tmp_path / "live.json"
    path.write_text(json.dumps({"tables": [_clean_table(engine="MyISAM")]}), encoding="utf-8")
    report = validate_snapshot(path)
    assert {v.artifact_path for v in report.violations} == {"live.json"}


def test_snapshot_replaces_repository_files(make_repo, tmp_path):
    root = make_repo({"schema.sql": "CREATE TABLE `Bad` (x INT) ENGINE=MyISAM;"})
    report = validate_repository(root, snapshot={"tables": [_clean_table()]})
    assert report.source == "snapshot"
    assert report.overall_status == GateStatus.PASS


def test_fallback_snapshot_only_when_empty(make_repo):
    root = make_repo({"README.md": "no schema here"})
    report = validate_repository(root, fallback_snapshot={"tables": [_clean_table()]})
    assert report.source == "snapshot"

    make_repo({"schema.sql": _SCHEMA})
    report = validate_repository(root, fallback_snapshot={"tables": [_clean_table(engine="MyISAM")]})
    assert report.source == "repository"
    assert report.overall_status == GateStatus.PASS


def test_snapshot_and_fallback_conflict(tmp_path):
    with pytest.raises(InvocationError):
        validate_repository(tmp_path, snapshot={"tables": []}, fallback_snapshot={"tables": []})


_SCHEMA = (
    "CREATE TABLE customers (\n"
    "  id BIGINT UNSIGNED NOT NULL AUTO_INCREMENT PRIMARY KEY,\n"
    "  email VARCHAR(255) NOT NULL\n"
    ") ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_0900_ai_ci;\n"
)
