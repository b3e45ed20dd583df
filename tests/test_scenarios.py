"""End-to-end acceptance scenarios through the public API."""

import pytest

from schemagate import DiscoveryEmpty, GateStatus, ViolationCode, validate_repository


SCENARIO_A = (
    "CREATE TABLE UserOrders (OrderID INT, status ENUM('a','b','c','d','e','f','g')) "
    "ENGINE=MyISAM DEFAULT CHARSET=utf8;\n"
)
SCENARIO_D = (
    "CREATE TABLE t (id BIGINT PRIMARY KEY) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 "
    "COLLATE=utf8mb4_0900_ai_ci;\n"
)


def test_scenario_a_legacy_table(make_repo, serial_config):
    root = make_repo({"schema.sql": SCENARIO_A})
    report = validate_repository(root, config=serial_config)

    naming = report.get_result("naming")
    assert naming.status == GateStatus.FAIL
    assert [v.suggestion for v in naming.violations] == ["rename to 'user_orders'", "rename to 'order_id'"]

    engine = report.get_result("engine_charset")
    assert engine.status == GateStatus.FAIL
    assert [v.code for v in engine.violations] == [ViolationCode.ENGINE_NOT_INNODB, ViolationCode.CHARSET_LEGACY_UTF8]

    antipatterns = report.get_result("antipatterns")
    assert antipatterns.status == GateStatus.FAIL
    assert sorted(v.code.value for v in antipatterns.violations) == [
        "ENUM_ON_BUSINESS_ENTITY",
        "MISSING_PRIMARY_KEY",
    ]
    assert report.get_result("migration_hygiene").status == GateStatus.PASS
    assert report.exit_code == 1


def test_scenario_b_empty_repository(tmp_path, serial_config):
    with pytest.raises(DiscoveryEmpty) as excinfo:
        validate_repository(tmp_path, config=serial_config)
    guidance = excinfo.value.guidance()
    assert "schema.sql" in guidance
    assert "V<version>__<desc>.sql" in guidance
    assert "schema.prisma" in guidance
    assert "--snapshot" in guidance


def test_scenario_c_destructive_migration_without_rollback(make_repo, serial_config):
    root = make_repo({"migrations/003_drop_legacy_notes.up.sql": "ALTER TABLE orders DROP COLUMN legacy_notes;\n"})
    report = validate_repository(root, config=serial_config)
    hygiene = report.get_result("migration_hygiene")
    assert hygiene.status == GateStatus.FAIL
    assert [v.code for v in hygiene.violations] == [
        ViolationCode.MISSING_ROLLBACK,
        ViolationCode.UNGUARDED_DESTRUCTIVE,
    ]
    assert report.exit_code == 1


def test_scenario_d_compliant_table(make_repo, serial_config):
    root = make_repo({"schema.sql": SCENARIO_D})
    report = validate_repository(root, config=serial_config)
    assert [r.status for r in report.results] == [GateStatus.PASS] * 4
    assert report.violations == []
    assert report.remediation == []
    assert report.exit_code == 0
