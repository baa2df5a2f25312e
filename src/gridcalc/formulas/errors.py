"""Error types for address resolution and formula evaluation."""

from __future__ import annotations

# Rendered in place of a cell's value whenever its formula cannot be evaluated.
ERROR_MARKER = "#ERROR"


class FormulaError(Exception):
    """Base class for all formula-related errors."""


class AddressError(FormulaError):
    """Text that does not decode to a cell address or range.

    Attributes:
        text: The offending address text.
    """

    def __init__(self, text: str, message: str | None = None) -> None:
        self.text = text
        msg = message or f"Invalid cell address: {text!r}"
        super().__init__(msg)


class ArithmeticParseError(FormulaError):
    """Syntax error in the arithmetic expression left after substitution.

    Attributes:
        position: Character position where the error was detected.
        message: Human-readable description.
    """

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        full = f"Arithmetic parse error: {message}"
        if position is not None:
            full += f" (at position {position})"
        super().__init__(full)


class DivisionByZeroError(FormulaError):
    """Division by zero in an arithmetic expression."""

    def __init__(self) -> None:
        super().__init__("Division by zero in formula")


class FormulaEvalError(FormulaError):
    """Any failure while evaluating a formula.

    The underlying cause (an ``AddressError``, ``ArithmeticParseError`` or
    ``DivisionByZeroError``) is chained as ``__cause__``.

    Attributes:
        formula: The formula text that failed.
    """

    def __init__(self, formula: str, message: str) -> None:
        self.formula = formula
        super().__init__(f"Cannot evaluate {formula!r}: {message}")


ENGINE_ERRORS = (
    FormulaError,
    AddressError,
    ArithmeticParseError,
    DivisionByZeroError,
    FormulaEvalError,
)
