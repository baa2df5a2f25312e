"""Formula evaluation against a sheet snapshot.

``evaluate()`` turns one cell's raw content into its display string:

1. Content not starting with ``=`` is returned unchanged.
2. ``SUM``/``AVERAGE`` range calls are replaced by their values.
3. Bare cell references are replaced by the referenced numbers.
4. The residual arithmetic is parsed and evaluated by a fixed grammar.

Substitution is deliberately non-recursive: a referenced cell that holds
a formula contributes ``0`` instead of its computed value.  Evaluation
order therefore never matters, and circular references (``A1 = "=B1"``,
``B1 = "=A1"``) terminate with the peer reading as ``0``.  Formula chains
are not supported.

Every call is a pure function of ``(content, snapshot)``; nothing is
cached between calls, so the display can never go stale.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import polars as pl

from gridcalc.addresses import Coordinate, index_to_col_letter
from gridcalc.formulas.errors import (
    ENGINE_ERRORS,
    ERROR_MARKER,
    AddressError,
    ArithmeticParseError,
    DivisionByZeroError,
    FormulaEvalError,
)
from gridcalc.formulas.evaluator import evaluate_expression
from gridcalc.formulas.substitution import substitute_ranges, substitute_references
from gridcalc.logging import events
from gridcalc.snapshot import SheetSnapshot, format_number


def as_snapshot(cells: Mapping[Any, Any]) -> SheetSnapshot:
    """Wrap a plain mapping as a ``SheetSnapshot`` (no-op for snapshots)."""
    if isinstance(cells, SheetSnapshot):
        return cells
    return SheetSnapshot(cells)


def evaluate(formula: str, snapshot: Mapping[Any, Any]) -> str:
    """Evaluate one cell's raw content against *snapshot*.

    Args:
        formula: Raw cell content.  Only text starting with ``=`` is
            treated as a formula.
        snapshot: The whole sheet's raw content at call time.

    Returns:
        The display string: the literal itself, or the formatted number.

    Raises:
        FormulaEvalError: If any reference, range or arithmetic step fails.
            The underlying error is chained as ``__cause__``.
    """
    if not formula.startswith("="):
        return formula

    expr = formula[1:].strip()
    try:
        sheet = as_snapshot(snapshot)
        expr = substitute_ranges(expr, sheet)
        expr = substitute_references(expr, sheet)
        value = evaluate_expression(expr)
    except (AddressError, ArithmeticParseError, DivisionByZeroError) as exc:
        raise FormulaEvalError(formula, str(exc)) from exc
    return format_number(value)


def _error_code(exc: BaseException) -> str:
    cause = exc.__cause__ if isinstance(exc, FormulaEvalError) and exc.__cause__ else exc
    if isinstance(cause, AddressError):
        return events.ADDRESS_MALFORMED
    if isinstance(cause, DivisionByZeroError):
        return events.DIVISION_BY_ZERO
    if isinstance(cause, ArithmeticParseError):
        return events.ARITH_MALFORMED
    return events.FORMULA_EVAL_ERROR


def display_value(
    content: str,
    snapshot: Mapping[Any, Any],
    *,
    coord: tuple[int, int] | None = None,
    marker: str = ERROR_MARKER,
) -> str:
    """Display string for one cell; never raises on bad formulas.

    Any engine error is logged as a ``formula_error`` event and rendered
    as *marker* (``#ERROR`` by default).
    """
    try:
        return evaluate(content, snapshot)
    except ENGINE_ERRORS as exc:
        ctx: dict[str, Any] = {"formula": content, "error": str(exc)}
        if coord is not None:
            ctx["cell"] = Coordinate(*coord).to_a1()
        events.emit_warning(
            events.EventType.formula_error,
            f"Formula evaluation failed: {exc}",
            ctx,
            error_code=_error_code(exc),
        )
        return marker


def _visible_shape(sheet: SheetSnapshot, n_rows: int | None, n_cols: int | None) -> tuple[int, int]:
    if sheet.shape is not None:
        default_rows, default_cols = sheet.shape
    elif len(sheet):
        default_rows = max(c.row for c in sheet) + 1
        default_cols = max(c.col for c in sheet) + 1
    else:
        default_rows = default_cols = 0
    return (
        default_rows if n_rows is None else n_rows,
        default_cols if n_cols is None else n_cols,
    )


def evaluate_grid(
    snapshot: Mapping[Any, Any],
    n_rows: int | None = None,
    n_cols: int | None = None,
    *,
    marker: str = ERROR_MARKER,
) -> dict[Coordinate, str]:
    """Display values for every non-empty cell inside the visible grid.

    The grid defaults to the snapshot's shape, or to the bounding box of
    its stored cells.  Each cell is evaluated independently; one cell's
    error never affects another.

    Returns:
        Mapping of coordinate -> display string, row-major.
    """
    sheet = as_snapshot(snapshot)
    rows, cols = _visible_shape(sheet, n_rows, n_cols)
    results: dict[Coordinate, str] = {}
    n_errors = 0
    for coord in sorted(sheet):
        if coord.row >= rows or coord.col >= cols:
            continue
        value = display_value(sheet[coord], sheet, coord=coord, marker=marker)
        if value == marker and sheet[coord].startswith("="):
            n_errors += 1
        results[coord] = value
    events.emit_info(
        events.EventType.grid_evaluated,
        f"Evaluated {len(results)} cells ({n_errors} errors)",
        {"n_rows": rows, "n_cols": cols, "n_cells": len(results), "n_errors": n_errors},
    )
    return results


def grid_frame(
    snapshot: Mapping[Any, Any],
    n_rows: int | None = None,
    n_cols: int | None = None,
    *,
    marker: str = ERROR_MARKER,
) -> pl.DataFrame:
    """The visible grid as a DataFrame of display strings.

    One Utf8 column per column letter (``A``, ``B``, ...), one row per
    sheet row; empty cells are ``""``.
    """
    sheet = as_snapshot(snapshot)
    rows, cols = _visible_shape(sheet, n_rows, n_cols)
    values = evaluate_grid(sheet, rows, cols, marker=marker)
    data = {
        index_to_col_letter(c): [values.get(Coordinate(r, c), "") for r in range(rows)]
        for c in range(cols)
    }
    return pl.DataFrame(data, schema={name: pl.Utf8 for name in data})
