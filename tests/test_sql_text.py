"""Tests for statement splitting, comment handling and identifier helpers."""

from schemagate.kernel.sql_text import (
    find_matching_paren,
    split_qualified,
    split_statements,
    split_top_level,
    unquote_identifier,
)


def test_split_statements_basic_lines():
    sql = "CREATE TABLE a (id INT);\n\nCREATE TABLE b (id INT);\n"
    statements, comments = split_statements(sql)
    assert [s.body for s in statements] == ["CREATE TABLE a (id INT)", "CREATE TABLE b (id INT)"]
    assert [s.line for s in statements] == [1, 3]
    assert comments == []


def test_semicolon_inside_string_does_not_split():
    sql = "INSERT INTO t VALUES ('a;b');\nSELECT 1;"
    statements, _ = split_statements(sql)
    assert len(statements) == 2
    assert "'a;b'" in statements[0].body


def test_comments_are_blanked_and_collected():
    sql = "-- first\n# second\n/* third\n   spans */\nDROP TABLE x;"
    statements, comments = split_statements(sql)
    assert [c.text for c in comments] == ["first", "second", "third\n   spans"]
    assert comments[2].line == 3
    assert comments[2].last_line == 4
    assert len(statements) == 1
    assert statements[0].body == "DROP TABLE x"
    assert statements[0].line == 5
    assert len(statements[0].comments) == 3


def test_trailing_comment_on_terminator_line_belongs_to_that_statement():
    sql = "DROP TABLE a; -- guarded: backup taken\nDROP TABLE b;"
    statements, _ = split_statements(sql)
    assert [c.text for c in statements[0].comments] == ["guarded: backup taken"]
    assert statements[1].comments == []


def test_multiline_statement_line_mapping():
    sql = "\n\nCREATE TABLE t (\n  id INT,\n  name TEXT\n);"
    statements, _ = split_statements(sql)
    raw = statements[0]
    assert raw.line == 3
    assert raw.line_at(raw.text.index("name")) == 5


def test_delimiter_directive():
    sql = (
        "DELIMITER //\n"
        "CREATE TRIGGER trg BEFORE INSERT ON t FOR EACH ROW BEGIN SET NEW.a = 1; END//\n"
        "DELIMITER ;\n"
        "DROP TABLE t;\n"
    )
    statements, _ = split_statements(sql)
    assert len(statements) == 2
    assert statements[0].body.startswith("CREATE TRIGGER")
    assert statements[0].body.endswith("END")
    assert statements[1].body == "DROP TABLE t"


def test_unterminated_final_statement_is_kept():
    statements, _ = split_statements("CREATE TABLE t (id INT)")
    assert len(statements) == 1


def test_unquote_identifier():
    assert unquote_identifier("`orders`") == "orders"
    assert unquote_identifier("`shop`.`orders`") == "orders"
    assert unquote_identifier('"Weird Name"') == "Weird Name"
    assert unquote_identifier("plain") == "plain"


def test_split_qualified_respects_quotes():
    assert split_qualified("`a.b`.c") == ["`a.b`", "c"]


def test_find_matching_paren_skips_quoted_parens():
    text = "(a, ')', (b))"
    assert find_matching_paren(text, 0) == len(text) - 1


def test_split_top_level_keeps_nested_commas():
    parts = [p.strip() for _, p in split_top_level("a DECIMAL(10,2), b ENUM('x,y','z'), c INT")]
    assert parts == ["a DECIMAL(10,2)", "b ENUM('x,y','z')", "c INT"]
