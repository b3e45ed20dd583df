"""Tests for the naming gate."""

from conftest import dump_artifact, gate_input_for

from schemagate.codes import GateStatus, ViolationCode
from schemagate.kernel import gate_naming
from schemagate.kernel.gate_naming import pluralize, suggest_alternative, suggest_rename, to_snake_case
from schemagate.kernel.model import Identifier, IdentifierKind
from schemagate.kernel.reserved_words import ReservedWordRegistry


REGISTRY = ReservedWordRegistry.builtin()


def test_to_snake_case():
    assert to_snake_case("UserOrders") == "user_orders"
    assert to_snake_case("OrderID") == "order_id"
    assert to_snake_case("HTTPRequestLog") == "http_request_log"
    assert to_snake_case("first-name") == "first_name"
    assert to_snake_case("__Odd  Name__") == "odd_name"


def test_pluralize():
    assert pluralize("order") == "orders"
    assert pluralize("category") == "categories"
    assert pluralize("index") == "indexes"


def test_reserved_word_alternatives_are_not_reserved():
    assert suggest_alternative("order", IdentifierKind.TABLE, REGISTRY) == "orders"
    assert suggest_alternative("key", IdentifierKind.COLUMN, REGISTRY) == "key_name"
    assert suggest_alternative("primary", IdentifierKind.INDEX, REGISTRY) == "idx_primary"
    assert suggest_alternative("check", IdentifierKind.CONSTRAINT, REGISTRY) == "con_check"


def test_alternative_skips_candidates_that_are_reserved():
    registry = ReservedWordRegistry.from_words(["group", "groups"])
    assert suggest_alternative("group", IdentifierKind.TABLE, registry) == "group_table"


def test_rename_suggestion_avoids_reserved_words():
    assert suggest_rename("Order", IdentifierKind.TABLE, REGISTRY) == "orders"
    assert suggest_rename("CustomerName", IdentifierKind.COLUMN, REGISTRY) == "customer_name"


def test_invalid_and_reserved_name_yields_two_violations():
    ident = Identifier(name="Order", kind=IdentifierKind.TABLE, source_artifact="schema.sql", source_line=3)
    violations = gate_naming.check_identifier(ident, REGISTRY)
    assert [v.code for v in violations] == [
        ViolationCode.NAMING_INVALID_CHARACTERS,
        ViolationCode.NAMING_RESERVED_WORD,
    ]
    assert all(v.line == 3 for v in violations)
    assert violations[1].suggestion == "rename to 'orders'"


def test_gate_reports_every_identifier_kind():
    sql = (
        "CREATE TABLE `Select` (\n"
        "  id INT PRIMARY KEY,\n"
        "  `key` VARCHAR(10),\n"
        "  KEY `IdxKey` (`key`),\n"
        "  CONSTRAINT `order` UNIQUE (id)\n"
        ") ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;"
    )
    result = gate_naming.evaluate(gate_input_for(dump_artifact(sql)))
    assert result.status == GateStatus.FAIL
    found = [(v.line, v.code) for v in result.violations]
    assert found == [
        (1, ViolationCode.NAMING_INVALID_CHARACTERS),
        (1, ViolationCode.NAMING_RESERVED_WORD),
        (3, ViolationCode.NAMING_RESERVED_WORD),
        (4, ViolationCode.NAMING_INVALID_CHARACTERS),
        (5, ViolationCode.NAMING_RESERVED_WORD),
    ]


def test_gate_discloses_non_exhaustive_list():
    result = gate_naming.evaluate(gate_input_for(dump_artifact("CREATE TABLE ok_name (id INT PRIMARY KEY);")))
    assert result.status == GateStatus.PASS
    assert result.violations == []
    assert "non-exhaustive" in result.notes[0]
    assert "built-in" in result.notes[0]


def test_override_registry_replaces_builtin():
    registry = ReservedWordRegistry.from_words(["widget"], origin="docs/db/mysql-reserved-words.txt")
    gate_input = gate_input_for(
        dump_artifact("CREATE TABLE widget (`order` INT PRIMARY KEY);"), registry=registry,
    )
    result = gate_naming.evaluate(gate_input)
    assert [(v.code, v.message.split("'")[1]) for v in result.violations] == [
        (ViolationCode.NAMING_RESERVED_WORD, "widget"),
    ]
    assert "docs/db/mysql-reserved-words.txt" in result.notes[0]


def test_duplicate_identifiers_reported_once():
    sql = "CREATE TABLE BadName (id INT PRIMARY KEY);"
    gate_input = gate_input_for(dump_artifact(sql), dump_artifact(sql))
    result = gate_naming.evaluate(gate_input)
    assert len(result.violations) == 1
