"""Tests for shared database types and SQL helpers."""

import pytest

from opencart_cli.database.base import (
    ParameterType,
    QueryResult,
    bind_parameters,
    classify_parameter,
    count_placeholders,
    escape_like,
    quote_identifier,
    resolve_host,
    split_placeholders,
)


class TestQueryResult:
    """Test cases for QueryResult."""

    def test_from_rows(self):
        result = QueryResult.from_rows([{"id": 1}, {"id": 2}])
        assert result.row == {"id": 1}
        assert result.rows == ({"id": 1}, {"id": 2})
        assert result.num_rows == 2

    def test_empty(self):
        result = QueryResult.from_rows([])
        assert result.row == {}
        assert result.rows == ()
        assert result.num_rows == 0

    def test_empty_instances_are_independent(self):
        first, second = QueryResult.empty(), QueryResult.empty()
        first.row["x"] = 1
        assert second.row == {}

    def test_scalar(self):
        result = QueryResult.from_rows([{"version": "8.0.36"}])
        assert result.scalar("version") == "8.0.36"
        assert result.scalar("missing", "n/a") == "n/a"


class TestParameters:
    """Test cases for parameter classification."""

    @pytest.mark.parametrize("value,expected_type,expected_value", [
        (None, ParameterType.NULL, None),
        (5, ParameterType.INTEGER, 5),
        (True, ParameterType.INTEGER, 1),
        (False, ParameterType.INTEGER, 0),
        (1.5, ParameterType.FLOAT, 1.5),
        ("abc", ParameterType.STRING, "abc"),
        (b"\x00\x01", ParameterType.STRING, b"\x00\x01"),
    ])
    def test_classify(self, value, expected_type, expected_value):
        assert classify_parameter(value) == (expected_type, expected_value)

    def test_other_types_become_strings(self):
        from decimal import Decimal
        assert classify_parameter(Decimal("9.99")) == (ParameterType.STRING, "9.99")

    def test_bind_preserves_order(self):
        assert bind_parameters([1, "a", None, True]) == [1, "a", None, 1]


class TestPlaceholders:
    """Test cases for placeholder scanning."""

    def test_simple(self):
        assert split_placeholders("a = ? AND b = ?") == ["a = ", " AND b = ", ""]

    def test_quoted_question_marks_ignored(self):
        sql = "SELECT '?', \"?\", `a?` FROM t WHERE x = ?"
        assert count_placeholders(sql) == 1

    def test_escaped_quote_inside_literal(self):
        sql = r"SELECT 'it\'s ?' WHERE x = ?"
        assert count_placeholders(sql) == 1

    @pytest.mark.parametrize("sql", [
        "SELECT id FROM t -- don't match\nWHERE a = ?",
        "SELECT id FROM t # it's a comment\nWHERE a = ?",
        "SELECT id /* it's ? here */ FROM t WHERE a = ?",
    ])
    def test_quotes_and_marks_inside_comments_ignored(self, sql):
        assert count_placeholders(sql) == 1

    def test_comment_text_is_kept(self):
        sql = "SELECT 1 -- note\nWHERE a = ?"
        assert "".join(split_placeholders(sql)) == "SELECT 1 -- note\nWHERE a = "

    def test_double_dash_without_space_is_not_a_comment(self):
        assert count_placeholders("SELECT 5--? ") == 1

    def test_no_placeholders(self):
        assert count_placeholders("SELECT 1") == 0


class TestQuoting:
    """Test cases for identifier and LIKE escaping."""

    def test_quote_identifier(self):
        assert quote_identifier("oc_product") == "`oc_product`"
        assert quote_identifier("we`ird") == "`we``ird`"

    def test_escape_like(self):
        assert escape_like("oc_") == "oc\\_"
        assert escape_like("50%") == "50\\%"

    def test_resolve_host(self):
        assert resolve_host("localhost") == "127.0.0.1"
        assert resolve_host("db.example.com") == "db.example.com"
        assert resolve_host(None) is None
