"""Summaries of a selected range, for building assistant prompts."""

from __future__ import annotations

import re

from pydantic import BaseModel, Field

from gridcalc.addresses import CellRange, Coordinate, parse_range
from gridcalc.snapshot import SheetSnapshot, coerce_number, format_number

_DATE_RE = re.compile(r"\d{4}[-/]\d{1,2}[-/]\d{1,2}")
_CURRENCY_CHARS = ("$", "¥", "€", "£")
_PREVIEW_LEN = 5


class RangeContext(BaseModel):
    """Data characteristics of a range of cells."""

    range: str | None = None
    n_rows: int = 0
    n_cols: int = 0
    is_empty: bool = True
    has_numbers: bool = False
    has_text: bool = False
    has_formulas: bool = False
    preview: list[str] = Field(default_factory=list)
    numeric_count: int = 0
    total: float | None = None
    mean: float | None = None
    minimum: float | None = None
    maximum: float | None = None
    patterns: list[str] = Field(default_factory=list)


def _bounding_range(snapshot: SheetSnapshot) -> CellRange | None:
    if not len(snapshot):
        return None
    rows = [c.row for c in snapshot]
    cols = [c.col for c in snapshot]
    return CellRange(Coordinate(min(rows), min(cols)), Coordinate(max(rows), max(cols)))


def detect_patterns(values: list[str], numbers: list[float]) -> list[str]:
    """Describe recognizable patterns among raw values."""
    patterns: list[str] = []

    if len(numbers) > 2:
        steps = [b - a for a, b in zip(numbers, numbers[1:])]
        mean_step = sum(steps) / len(steps)
        if abs(mean_step) > 0.01:
            patterns.append(f"numeric sequence (mean step {mean_step:.2f})")

    if any(_DATE_RE.search(v) for v in values):
        patterns.append("contains dates")
    if any("%" in v for v in values):
        patterns.append("contains percentages")
    if any(ch in v for v in values for ch in _CURRENCY_CHARS):
        patterns.append("contains currency amounts")

    return patterns


def analyze_range(
    snapshot: SheetSnapshot,
    cell_range: CellRange | str | None = None,
) -> RangeContext:
    """Analyze the cells of *cell_range* (or the whole sheet when ``None``).

    Formula cells are flagged but not evaluated; numbers are read with the
    same coercion the evaluator uses.
    """
    if isinstance(cell_range, str):
        cell_range = parse_range(cell_range)
    if cell_range is None:
        cell_range = _bounding_range(snapshot)
        if cell_range is None:
            return RangeContext()

    ctx = RangeContext(
        range=cell_range.to_a1(),
        n_rows=cell_range.n_rows,
        n_cols=cell_range.n_cols,
    )
    values: list[str] = []
    numbers: list[float] = []
    for _, content in snapshot.cells_in(cell_range):
        values.append(content)
        if content.startswith("="):
            ctx.has_formulas = True
            continue
        number = coerce_number(content)
        if number is None:
            ctx.has_text = True
        else:
            ctx.has_numbers = True
            numbers.append(number)

    ctx.is_empty = not values
    ctx.preview = values[:_PREVIEW_LEN]
    ctx.numeric_count = len(numbers)
    if numbers:
        ctx.total = sum(numbers)
        ctx.mean = ctx.total / len(numbers)
        ctx.minimum = min(numbers)
        ctx.maximum = max(numbers)
    ctx.patterns = detect_patterns(values, numbers)
    return ctx


def describe(ctx: RangeContext) -> str:
    """Plain-text summary of *ctx*."""
    if ctx.is_empty:
        return "The selection is empty."

    lines: list[str] = []
    if ctx.range:
        lines.append(f"Selection: {ctx.range} ({ctx.n_rows} rows x {ctx.n_cols} columns)")
    kinds = [
        name
        for name, flag in (
            ("numbers", ctx.has_numbers),
            ("text", ctx.has_text),
            ("formulas", ctx.has_formulas),
        )
        if flag
    ]
    lines.append(f"Contains: {', '.join(kinds)}")
    if ctx.numeric_count:
        lines.append(
            f"Numeric cells: {ctx.numeric_count}, sum {format_number(ctx.total)}, "
            f"mean {format_number(ctx.mean)}, "
            f"min {format_number(ctx.minimum)}, max {format_number(ctx.maximum)}"
        )
    if ctx.patterns:
        lines.append(f"Patterns: {'; '.join(ctx.patterns)}")
    lines.append(f"Preview: {', '.join(ctx.preview)}")
    return "\n".join(lines)
