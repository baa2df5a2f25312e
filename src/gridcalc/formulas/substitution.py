"""Textual substitution of ranges and cell references into a formula.

Two passes run over the expression text, in order:

1. ``SUM(<cell>:<cell>)`` / ``AVERAGE(<cell>:<cell>)`` calls are replaced
   by the aggregate of the numeric cells in the rectangle.
2. Remaining bare addresses (``B12``) are replaced by the referenced
   cell's number.

A referenced cell whose content is itself a formula always contributes 0
and is never evaluated, so circular references cannot recurse.
"""

from __future__ import annotations

import re

from gridcalc.addresses import CellRange, Coordinate, parse_cell_address, parse_range
from gridcalc.formulas.errors import AddressError
from gridcalc.snapshot import SheetSnapshot, coerce_number

RANGE_FUNCTIONS = ("SUM", "AVERAGE")

_FUNC_NAMES = "|".join(RANGE_FUNCTIONS)
_CELL = r"[A-Za-z]+\d+"

# SUM(A1:B3), average( a1 : a3 ) -- exactly one range argument, and nothing
# glued to the closing paren (SUM(A1:A2)5 is left for the parser to reject).
_RANGE_FUNC_RE = re.compile(
    rf"(?<![A-Za-z0-9_.])({_FUNC_NAMES})\s*\(\s*({_CELL})\s*:\s*({_CELL})\s*\)(?![A-Za-z0-9_.])",
    re.IGNORECASE,
)

# Bare A1 refs, not glued to identifiers or numeric literals (1E5, 2A1).
_BARE_REF_RE = re.compile(r"(?<![A-Za-z0-9_.])([A-Z]+)(\d+)(?![A-Za-z0-9_.])")


def _literal(value: float) -> str:
    """Render a number so the arithmetic grammar reads it back exactly."""
    text = repr(float(value))
    return f"({text})" if text.startswith("-") else text


def _check_bounds(snapshot: SheetSnapshot, coord: Coordinate, text: str) -> None:
    if not snapshot.in_bounds(coord):
        raise AddressError(text, f"Reference outside the sheet: {text!r}")


def cell_contribution(content: str) -> float:
    """Numeric contribution of a referenced cell's raw content."""
    if content.startswith("="):
        return 0.0
    value = coerce_number(content)
    return 0.0 if value is None else value


def aggregate_range(func_name: str, cell_range: CellRange, snapshot: SheetSnapshot) -> float:
    """Compute ``SUM`` or ``AVERAGE`` over the numeric cells of a range.

    Only stored numeric cells count.  Empty cells, text cells and formula
    cells add nothing to the total and are not counted by ``AVERAGE``, so
    ``AVERAGE(A1:A4)`` over ``4, "", "", 6`` is 5.  An empty count yields 0.
    """
    total = 0.0
    count = 0
    for _, content in snapshot.cells_in(cell_range):
        if content.startswith("="):
            continue
        value = coerce_number(content)
        if value is None:
            continue
        total += value
        count += 1
    name = func_name.upper()
    if name == "SUM":
        return total
    if name == "AVERAGE":
        return total / count if count else 0.0
    raise ValueError(f"Unsupported range function: {func_name!r}")


def substitute_ranges(expr: str, snapshot: SheetSnapshot) -> str:
    """Replace every range-function call in *expr* with its computed value.

    Raises:
        AddressError: If a range corner is malformed or outside the sheet.
    """

    def _replace(m: re.Match) -> str:
        start_text, end_text = m.group(2).upper(), m.group(3).upper()
        cell_range = parse_range(f"{start_text}:{end_text}")
        _check_bounds(snapshot, cell_range.end, m.group(0))
        return _literal(aggregate_range(m.group(1), cell_range, snapshot))

    return _RANGE_FUNC_RE.sub(_replace, expr)


def substitute_references(expr: str, snapshot: SheetSnapshot) -> str:
    """Replace every bare cell reference in *expr* with the cell's number.

    Raises:
        AddressError: If a reference has row 0 or lies outside the sheet.
    """

    def _replace(m: re.Match) -> str:
        addr = m.group(0)
        coord = parse_cell_address(addr)
        _check_bounds(snapshot, coord, addr)
        return _literal(cell_contribution(snapshot.content(coord)))

    return _BARE_REF_RE.sub(_replace, expr)
