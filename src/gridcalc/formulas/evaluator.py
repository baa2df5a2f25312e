"""Tree-walking evaluator for parsed arithmetic expressions."""

from __future__ import annotations

import math

from lark import Token, Tree

from gridcalc.formulas.errors import ArithmeticParseError, DivisionByZeroError
from gridcalc.formulas.parser import parse_expression


def evaluate_expression(text: str) -> float:
    """Parse and evaluate an arithmetic expression.

    Args:
        text: Expression containing only numbers, ``+ - * /`` and parentheses.

    Returns:
        The computed value as a float.

    Raises:
        ArithmeticParseError: If the expression is malformed or the result
            is not finite.
        DivisionByZeroError: If any divisor evaluates to zero.
    """
    try:
        result = evaluate_tree(parse_expression(text))
    except RecursionError as exc:
        raise ArithmeticParseError("expression is nested too deeply") from exc
    if not math.isfinite(result):
        raise ArithmeticParseError(f"result is not a finite number: {result}")
    return result


def evaluate_tree(tree: Tree) -> float:
    """Evaluate a parse tree from ``parse_expression()``."""
    return _eval(tree)


def _eval(node: Tree | Token) -> float:
    """Recursively evaluate a tree node."""
    if isinstance(node, Token):
        return _parse_number(node)

    rule = node.data

    # Start rule just wraps expr
    if rule == "start":
        return _eval(node.children[0])

    if rule == "number":
        return _parse_number(node.children[0])

    if rule == "add":
        return _eval(node.children[0]) + _eval(node.children[1])
    if rule == "sub":
        return _eval(node.children[0]) - _eval(node.children[1])
    if rule == "mul":
        return _eval(node.children[0]) * _eval(node.children[1])
    if rule == "div":
        left = _eval(node.children[0])
        right = _eval(node.children[1])
        if right == 0:
            raise DivisionByZeroError()
        return left / right
    if rule == "neg":
        return -_eval(node.children[0])
    if rule == "pos":
        return _eval(node.children[0])

    raise ArithmeticParseError(f"Unknown node type: {rule}")


def _parse_number(token: Token) -> float:
    """Parse a NUMBER token to float."""
    if token.type != "NUMBER":
        raise ArithmeticParseError(f"Unexpected token {str(token)!r}")
    return float(str(token))
