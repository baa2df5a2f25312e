"""Tests for the arithmetic grammar and evaluator."""

from __future__ import annotations

import pytest

from gridcalc.formulas import (
    ArithmeticParseError,
    DivisionByZeroError,
    evaluate_expression,
    parse_expression,
)


# ────────────────────────────────────────────────────────────────
# Parser
# ────────────────────────────────────────────────────────────────


class TestParser:
    def test_simple_addition(self) -> None:
        tree = parse_expression("1 + 2")
        assert tree.data == "start"

    def test_number_node(self) -> None:
        tree = parse_expression("42")
        assert tree.children[0].data == "number"

    def test_parentheses_collapse(self) -> None:
        tree = parse_expression("((7))")
        assert tree.children[0].data == "number"

    @pytest.mark.parametrize("text", ["", "   ", "1 +", "(1 + 2", "1 + 2)", "* 3", "1 2", "()"])
    def test_syntax_errors(self, text: str) -> None:
        with pytest.raises(ArithmeticParseError):
            parse_expression(text)

    @pytest.mark.parametrize(
        "text",
        [
            "abc",
            "A1",
            "SUM(1)",
            "__import__('os')",
            "alert(1)",
            "1; 2",
            "2 ** 3",
            "'x'",
        ],
    )
    def test_non_arithmetic_rejected(self, text: str) -> None:
        """Identifiers, calls and strings are not part of the grammar."""
        with pytest.raises(ArithmeticParseError):
            parse_expression(text)

    def test_error_position(self) -> None:
        with pytest.raises(ArithmeticParseError) as exc_info:
            parse_expression("1 + x")
        assert exc_info.value.position is not None


# ────────────────────────────────────────────────────────────────
# Evaluation
# ────────────────────────────────────────────────────────────────


class TestEvaluateExpression:
    def test_precedence(self) -> None:
        """Multiplication binds tighter than addition: 1+2*3 = 7."""
        assert evaluate_expression("1+2*3") == 7

    def test_parentheses_override_precedence(self) -> None:
        assert evaluate_expression("(1+2)*3") == 9

    def test_subtraction_left_associative(self) -> None:
        assert evaluate_expression("10-4-3") == 3

    def test_division_left_associative(self) -> None:
        assert evaluate_expression("8/4/2") == 1

    def test_unary_minus(self) -> None:
        assert evaluate_expression("-2*3") == -6
        assert evaluate_expression("2*-3") == -6
        assert evaluate_expression("--2") == 2
        assert evaluate_expression("-(1+2)") == -3

    def test_unary_plus(self) -> None:
        assert evaluate_expression("+5") == 5

    def test_decimals_and_exponents(self) -> None:
        assert evaluate_expression("1.5e2") == 150
        assert evaluate_expression(".5 + 0.25") == 0.75
        assert evaluate_expression("2E-1") == pytest.approx(0.2)

    def test_whitespace_ignored(self) -> None:
        assert evaluate_expression("  1 +\t2 ") == 3

    def test_returns_float(self) -> None:
        assert isinstance(evaluate_expression("1+1"), float)

    def test_fractional_division(self) -> None:
        assert evaluate_expression("1/4") == 0.25

    def test_zero_numerator(self) -> None:
        assert evaluate_expression("0/5") == 0


class TestArithmeticErrors:
    def test_division_by_zero(self) -> None:
        with pytest.raises(DivisionByZeroError):
            evaluate_expression("1/0")

    def test_division_by_computed_zero(self) -> None:
        with pytest.raises(DivisionByZeroError):
            evaluate_expression("1/(2-2)")

    def test_zero_over_zero(self) -> None:
        with pytest.raises(DivisionByZeroError):
            evaluate_expression("0/0")

    def test_overflow_is_an_error(self) -> None:
        with pytest.raises(ArithmeticParseError, match="finite"):
            evaluate_expression("1e308*10")

    def test_deep_nesting_is_an_error_not_a_crash(self) -> None:
        with pytest.raises(ArithmeticParseError):
            evaluate_expression("-" * 5000 + "1")
