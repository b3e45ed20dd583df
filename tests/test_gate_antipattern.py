"""Tests for the antipattern gate."""

from conftest import dump_artifact, gate_input_for, migration_artifact

from schemagate.codes import GateStatus, ViolationCode
from schemagate.kernel import gate_antipattern
from schemagate.kernel.lexicons import Lexicons, name_tokens


def _violations(sql: str, **kwargs):
    return gate_antipattern.evaluate(gate_input_for(dump_artifact(sql), **kwargs)).violations


def test_missing_primary_key():
    violations = _violations("CREATE TABLE audit_log (message TEXT);")
    assert [v.code for v in violations] == [ViolationCode.MISSING_PRIMARY_KEY]
    assert violations[0].line == 1


def test_enum_on_business_entity_uses_value_limit():
    six = "ENUM('a','b','c','d','e','f')"
    five = "ENUM('a','b','c','d','e')"
    assert [v.code for v in _violations(f"CREATE TABLE user_orders (id INT PRIMARY KEY, state {six});")] == [
        ViolationCode.ENUM_ON_BUSINESS_ENTITY,
    ]
    assert _violations(f"CREATE TABLE user_orders (id INT PRIMARY KEY, state {five});") == []
    # not a business entity
    assert _violations(f"CREATE TABLE colors (id INT PRIMARY KEY, hue {six});") == []


def test_float_money_columns():
    sql = (
        "CREATE TABLE invoices (\n"
        "  id INT PRIMARY KEY,\n"
        "  unit_price FLOAT,\n"
        "  TotalAmount DOUBLE,\n"
        "  weight FLOAT,\n"
        "  fees DECIMAL(10,2)\n"
        ");"
    )
    violations = _violations(sql)
    assert [(v.code, v.line) for v in violations] == [
        (ViolationCode.FLOAT_MONETARY_COLUMN, 3),
        (ViolationCode.FLOAT_MONETARY_COLUMN, 4),
    ]
    assert "DECIMAL" in violations[0].suggestion


def test_prefix_index_on_text_column():
    sql = (
        "CREATE TABLE articles (\n"
        "  id INT PRIMARY KEY,\n"
        "  body TEXT,\n"
        "  title VARCHAR(200),\n"
        "  KEY idx_body (body(32)),\n"
        "  KEY idx_title (title(20))\n"
        ");"
    )
    violations = _violations(sql)
    assert [(v.code, v.line) for v in violations] == [(ViolationCode.TEXT_PREFIX_INDEX, 5)]
    assert "idx_body" in violations[0].message


def test_prefix_index_created_outside_the_table():
    sql = "CREATE TABLE posts (id INT PRIMARY KEY, body TEXT);\nCREATE INDEX idx_body ON posts (body(100));"
    violations = _violations(sql)
    assert [(v.code, v.line) for v in violations] == [(ViolationCode.TEXT_PREFIX_INDEX, 2)]
    assert "idx_body" in violations[0].message


def test_prefix_index_added_by_later_migration():
    create = migration_artifact(
        "CREATE TABLE posts (id INT PRIMARY KEY, body TEXT);",
        path="migrations/001_posts.up.sql",
        rollback="DROP TABLE posts;",
    )
    alter = migration_artifact(
        "ALTER TABLE posts ADD INDEX (body(10));",
        path="migrations/002_posts_body.up.sql",
        rollback="ALTER TABLE posts DROP INDEX body;",
    )
    violations = gate_antipattern.evaluate(gate_input_for(create, alter)).violations
    assert [(v.code, v.artifact_path) for v in violations] == [
        (ViolationCode.TEXT_PREFIX_INDEX, "migrations/002_posts_body.up.sql"),
    ]
    assert "unnamed index" in violations[0].message


def test_primary_key_added_by_alter_table():
    assert _violations(
        "CREATE TABLE t (id BIGINT NOT NULL) ENGINE=InnoDB;\nALTER TABLE t ADD PRIMARY KEY (id);"
    ) == []
    assert _violations(
        "CREATE TABLE t (id BIGINT NOT NULL);\nALTER TABLE t ADD CONSTRAINT pk_t PRIMARY KEY (id);"
    ) == []
    # a unique key is not a primary key
    assert [v.code for v in _violations(
        "CREATE TABLE t (id BIGINT NOT NULL);\nALTER TABLE t ADD UNIQUE KEY uq_t (id);"
    )] == [ViolationCode.MISSING_PRIMARY_KEY]


def test_string_identifier_columns():
    sql = "CREATE TABLE payments (id CHAR(36) PRIMARY KEY, customer_id VARCHAR(20), external_ref VARCHAR(20));"
    violations = _violations(sql)
    assert [v.code for v in violations] == [
        ViolationCode.STRING_IDENTIFIER_COLUMN,
        ViolationCode.STRING_IDENTIFIER_COLUMN,
    ]
    assert "customer_id" in violations[1].message


def test_lexicon_override_changes_heuristics():
    lexicons = Lexicons(business_entities=["color"], monetary=["weight"], enum_value_limit=2)
    sql = "CREATE TABLE colors (id INT PRIMARY KEY, hue ENUM('r','g','b'), weight FLOAT);"
    codes = [v.code for v in _violations(sql, lexicons=lexicons)]
    assert codes == [ViolationCode.ENUM_ON_BUSINESS_ENTITY, ViolationCode.FLOAT_MONETARY_COLUMN]


def test_clean_table_passes():
    sql = "CREATE TABLE products (id BIGINT PRIMARY KEY, price DECIMAL(19,4), kind ENUM('a','b'));"
    result = gate_antipattern.evaluate(gate_input_for(dump_artifact(sql)))
    assert result.status == GateStatus.PASS


def test_name_tokens_split_case_and_separators():
    assert name_tokens("unitPrice") == ["unit", "price"]
    assert name_tokens("TOTAL_AMOUNT") == ["total", "amount"]
    assert name_tokens("HTTPFee2") == ["http", "fee", "2"]
