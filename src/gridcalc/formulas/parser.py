"""Lark-based parser for the arithmetic left after reference substitution.

Supports numeric literals, ``+ - * /``, unary ``+``/``-`` and
parentheses.  Nothing else is a valid token, so identifiers, strings and
function calls that survive substitution are rejected as syntax errors
instead of being executed.
"""

from __future__ import annotations

from lark import Lark, Tree
from lark.exceptions import LarkError

from gridcalc.formulas.errors import ArithmeticParseError

# LALR(1) grammar.
# Operator precedence (lowest to highest):
#   1. Addition/subtraction: + -
#   2. Multiplication/division: * /
#   3. Unary plus/minus: + -
#   4. Atoms: number, parenthesized expr
GRAMMAR = r"""
start: expr

?expr: addition

?addition: multiplication
    | addition "+" multiplication  -> add
    | addition "-" multiplication  -> sub

?multiplication: unary
    | multiplication "*" unary  -> mul
    | multiplication "/" unary  -> div

?unary: atom
    | "-" unary  -> neg
    | "+" unary  -> pos

?atom: NUMBER        -> number
    | "(" expr ")"

%import common.NUMBER
%import common.WS
%ignore WS
"""

_parser = Lark(GRAMMAR, parser="lalr", start="start")


def parse_expression(text: str) -> Tree:
    """Parse an arithmetic expression into a Lark Tree.

    Args:
        text: The expression, e.g. ``"1 + 2 * (3 - 4)"``.

    Returns:
        A Lark parse tree.

    Raises:
        ArithmeticParseError: If the expression is empty or has invalid syntax.
    """
    if not text.strip():
        raise ArithmeticParseError("empty expression", position=0)
    try:
        return _parser.parse(text)
    except LarkError as exc:
        pos = getattr(exc, "column", None)
        raise ArithmeticParseError(str(exc).splitlines()[0], position=pos) from exc
