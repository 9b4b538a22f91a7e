"""
Unit tests for the Numpus parser.
"""

import pytest
from numpus import (
    parse_expression, parse_document, parse_line, format_ast,
    Number, Variable, UnaryOp, BinaryOp, FunctionCall, Assignment,
    FunctionDefinition, Comment,
)


def parse_ok(text):
    """Parse and assert success."""
    result = parse_expression(text)
    assert result.success, result.error
    return result.value


def parse_fails(text):
    """Parse and assert failure."""
    result = parse_expression(text)
    assert not result.success
    assert result.value is None
    return result.error


class TestLiterals:
    """Test atoms."""

    def test_number(self):
        """Plain number literal."""
        assert parse_ok("42") == Number(42.0)

    def test_number_with_unit(self):
        """Unit text is carried by the literal."""
        assert parse_ok("5 km") == Number(5.0, "km")

    def test_variable(self):
        """Bare identifier is a variable."""
        assert parse_ok("speed") == Variable("speed")

    def test_parenthesized(self):
        """Parentheses produce no node of their own."""
        assert parse_ok("((7))") == Number(7.0)

    def test_surrounding_whitespace(self):
        """Input is trimmed before parsing."""
        assert parse_ok("   x   ") == Variable("x")


class TestPrecedence:
    """Test the operator tiers."""

    def test_multiplication_over_addition(self):
        """2 + 3 * 4 groups the product."""
        assert parse_ok("2 + 3 * 4") == BinaryOp(
            Number(2.0), "+", BinaryOp(Number(3.0), "*", Number(4.0)))

    def test_plus_binds_tighter_than_minus(self):
        """10 - 4 + 3 groups as 10 - (4 + 3)."""
        assert parse_ok("10 - 4 + 3") == BinaryOp(
            Number(10.0), "-", BinaryOp(Number(4.0), "+", Number(3.0)))

    def test_star_binds_tighter_than_slash(self):
        """8 / 2 * 2 groups as 8 / (2 * 2)."""
        assert parse_ok("8 / 2 * 2") == BinaryOp(
            Number(8.0), "/", BinaryOp(Number(2.0), "*", Number(2.0)))

    def test_minus_is_left_associative(self):
        """Same-tier operators group left to right."""
        assert parse_ok("1 - 2 - 3") == BinaryOp(
            BinaryOp(Number(1.0), "-", Number(2.0)), "-", Number(3.0))

    def test_power_is_right_associative(self):
        """2 ^ 3 ^ 2 groups as 2 ^ (3 ^ 2)."""
        assert parse_ok("2 ^ 3 ^ 2") == BinaryOp(
            Number(2.0), "^", BinaryOp(Number(3.0), "^", Number(2.0)))

    def test_unary_binds_tightest(self):
        """-2 ^ 2 negates before raising."""
        assert parse_ok("-2 ^ 2") == BinaryOp(
            UnaryOp("-", Number(2.0)), "^", Number(2.0))

    def test_chained_unary(self):
        """Prefix signs may repeat."""
        assert parse_ok("--5") == UnaryOp("-", UnaryOp("-", Number(5.0)))
        assert parse_ok("+x") == UnaryOp("+", Variable("x"))


class TestStatements:
    """Test statement-kind disambiguation."""

    def test_assignment(self):
        """name = expression."""
        assert parse_ok("x = 1 + 2") == Assignment(
            "x", BinaryOp(Number(1.0), "+", Number(2.0)))

    def test_function_definition(self):
        """name(params) = expression."""
        assert parse_ok("area(w, h) = w * h") == FunctionDefinition(
            "area", ("w", "h"), BinaryOp(Variable("w"), "*", Variable("h")))

    def test_function_definition_without_parameters(self):
        """Empty parameter list."""
        node = parse_ok("answer() = 42")
        assert isinstance(node, FunctionDefinition)
        assert node.parameters == ()

    def test_call(self):
        """A call is an expression, not a definition."""
        assert parse_ok("max(1, x, 3)") == FunctionCall(
            "max", (Number(1.0), Variable("x"), Number(3.0)))

    def test_call_without_arguments(self):
        """Empty argument list."""
        assert parse_ok("answer()") == FunctionCall("answer")

    def test_nested_call_arguments(self):
        """Arguments are full expressions."""
        node = parse_ok("pow(2, 1 + 2)")
        assert node.arguments[1] == BinaryOp(Number(1.0), "+", Number(2.0))

    def test_assignment_of_call(self):
        """Assignment value may be a call."""
        node = parse_ok("y = sqrt(16)")
        assert node == Assignment("y", FunctionCall("sqrt", (Number(16.0),)))


class TestErrors:
    """Test parse failure reporting."""

    def test_empty_input(self):
        """Empty input is an error."""
        error = parse_fails("")
        assert "unexpected end of input" in error
        assert "expected expression" in error

    def test_whitespace_input(self):
        """Whitespace-only input is an error."""
        assert "end of input" in parse_fails("   ")

    def test_incomplete_expression(self):
        """Missing right operand."""
        assert "unexpected end of input" in parse_fails("5 +")

    def test_trailing_input(self):
        """Two expressions on one line."""
        error = parse_fails("2 3")
        assert "after end of statement" in error
        assert error.endswith("(column 3)")

    def test_unbalanced_parenthesis(self):
        """Missing closing parenthesis."""
        assert "')'" in parse_fails("(1 + 2")

    def test_literal_parameter_reports_furthest_error(self):
        """A definition with a literal parameter fails past the call."""
        error = parse_fails("f(1) = 2")
        assert "'='" in error
        assert "column 6" in error

    def test_lexer_error_is_returned(self):
        """Lexer failures are reported the same way."""
        assert "unexpected character '@'" in parse_fails("1 @ 2")

    def test_none_is_rejected(self):
        """None is a programming error, not a parse failure."""
        with pytest.raises(TypeError):
            parse_expression(None)

    def test_deep_nesting(self):
        """Pathologically nested input fails instead of crashing."""
        text = "(" * 5000 + "1" + ")" * 5000
        error = parse_fails(text)
        assert "nested too deeply" in error


class TestDocument:
    """Test multi-line documents."""

    def test_empty_document(self):
        """Empty or blank documents give no nodes."""
        assert parse_document("").value == []
        assert parse_document(" \n\t\n").value == []

    def test_blank_lines_are_skipped(self):
        """One node per non-blank line."""
        result = parse_document("x = 1\n\n\ny = x * 2")
        assert result.success
        assert len(result.value) == 2
        assert result.value[1] == Assignment(
            "y", BinaryOp(Variable("x"), "*", Number(2.0)))

    def test_crlf_line_endings(self):
        """Windows line endings are normalized."""
        result = parse_document("a = 1\r\nb = 2\r\n")
        assert [node.name for node in result.value] == ["a", "b"]

    def test_comments(self):
        """'#' lines become comments with trimmed text."""
        result = parse_document("x = 1\n   #  running total  \nx + 1")
        comment = result.value[1]
        assert comment == Comment("running total")
        assert comment.line == 2
        assert comment.column == 4

    def test_error_names_the_line(self):
        """A bad line fails the whole document."""
        result = parse_document("x = 1\n\ny = (")
        assert not result.success
        assert result.error.startswith("Line 3: ")

    def test_node_positions(self):
        """Nodes carry their document line and column."""
        result = parse_document("\n\n  total = 5")
        node = result.value[0]
        assert node.line == 3
        assert node.column == 3
        assert node.value.column == 11

    def test_hand_built_nodes_have_no_position(self):
        """Nodes built outside the parser report line 0."""
        assert Number(1.0).line == 0
        assert Number(1.0).column == 0

    def test_parse_line_recognizes_comments(self):
        """Single-line entry point used by document evaluation."""
        result = parse_line("# heading", 4)
        assert result.success
        assert result.value.line == 4
        assert result.value.text == "heading"


class TestDebugPrinting:
    """Test AST rendering."""

    def test_format_ast(self):
        """Tree rendering names every node."""
        text = format_ast(parse_ok("f(x) = -x + 1 km"))
        assert text.splitlines()[0] == "FunctionDefinition"
        assert "BinaryOp" in text
        assert "UnaryOp" in text
        assert "unit: 'km'" in text
