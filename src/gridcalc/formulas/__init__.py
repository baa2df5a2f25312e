"""Arithmetic parsing/evaluation and the engine's error taxonomy.

Public API::

    from gridcalc.formulas import parse_expression, evaluate_expression
"""

from gridcalc.formulas.errors import (
    ENGINE_ERRORS,
    ERROR_MARKER,
    AddressError,
    ArithmeticParseError,
    DivisionByZeroError,
    FormulaError,
    FormulaEvalError,
)
from gridcalc.formulas.evaluator import evaluate_expression
from gridcalc.formulas.parser import parse_expression

__all__ = [
    "ENGINE_ERRORS",
    "ERROR_MARKER",
    "AddressError",
    "ArithmeticParseError",
    "DivisionByZeroError",
    "FormulaError",
    "FormulaEvalError",
    "evaluate_expression",
    "parse_expression",
]
