"""Tests for column type classification and narrowing rules."""

import pytest

from schemagate.kernel.types import base_type, classify, count_enum_values, is_narrowing, type_arguments


def test_base_type_and_arguments():
    assert base_type("varchar(32)") == "VARCHAR"
    assert base_type("DOUBLE PRECISION") == "DOUBLE"
    assert type_arguments("DECIMAL(10,2)") == "10,2"
    assert type_arguments("INT") is None


def test_count_enum_values_handles_escaped_quotes():
    assert count_enum_values("'a','b','c'") == 3
    assert count_enum_values("'it''s','b'") == 2
    assert count_enum_values("'a,b','c'") == 2
    assert count_enum_values(None) == 0


def test_classify_flags():
    assert classify("ENUM('a','b')") == {
        "is_enum": True,
        "enum_value_count": 2,
        "is_floating_point": False,
        "is_string": False,
        "is_text_or_blob": False,
    }
    assert classify("FLOAT")["is_floating_point"] is True
    assert classify("VARCHAR(20)")["is_string"] is True
    assert classify("TEXT")["is_string"] is True
    assert classify("TEXT")["is_text_or_blob"] is True
    assert classify("BLOB")["is_string"] is False
    assert classify("BLOB")["is_text_or_blob"] is True


@pytest.mark.parametrize("old,new", [
    ("BIGINT", "INT"),
    ("VARCHAR(255)", "VARCHAR(100)"),
    ("TEXT", "VARCHAR(100)"),
    ("DECIMAL(10,2)", "DECIMAL(10,1)"),
    ("DECIMAL(12,2)", "DECIMAL(8,2)"),
    ("DOUBLE", "FLOAT"),
    ("ENUM('a','b','c')", "ENUM('a','b')"),
    ("VARCHAR(20)", "INT"),
    ("INT UNSIGNED", "INT"),
])
def test_narrowing_changes(old, new):
    assert is_narrowing(old, new) is True


@pytest.mark.parametrize("old,new", [
    ("INT", "BIGINT"),
    ("VARCHAR(100)", "VARCHAR(255)"),
    ("VARCHAR(100)", "TEXT"),
    ("INT", "DECIMAL(20,0)"),
    ("DATE", "DATETIME"),
    ("INT", "INT"),
    ("INT", ""),
])
def test_non_narrowing_changes(old, new):
    assert is_narrowing(old, new) is False
