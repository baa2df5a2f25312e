"""Immutable sheet snapshots and numeric coercion of raw cell content.

A snapshot maps ``Coordinate`` -> raw content string.  The engine reads
snapshots and never mutates them; edits produce a new snapshot via
``with_updates``.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any, Iterator

from gridcalc.addresses import CellRange, Coordinate, parse_cell_address
from gridcalc.formulas.errors import AddressError

# Leading decimal number: sign, digits, optional fraction, optional exponent.
_LEADING_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def coerce_number(text: str) -> float | None:
    """Read the leading number of *text*, or ``None`` if there is none.

    ``"12abc"`` reads as ``12.0``; ``""``, ``"x"`` and non-finite values
    such as ``"1e999"`` read as ``None``.
    """
    m = _LEADING_NUMBER_RE.match(text.lstrip())
    if not m:
        return None
    value = float(m.group(0))
    if not math.isfinite(value):
        return None
    return value


def format_number(value: float) -> str:
    """Format a computed number for display."""
    if isinstance(value, int) or not math.isfinite(value):
        return str(value)
    if value == int(value):
        return str(int(value))
    return f"{value:.10g}"


def _to_coordinate(key: Any) -> Coordinate:
    if isinstance(key, str):
        return parse_cell_address(key)
    if isinstance(key, tuple) and len(key) == 2:
        row, col = key
        if not isinstance(row, int) or not isinstance(col, int) or row < 0 or col < 0:
            raise AddressError(str(key), f"Invalid cell coordinate: {key!r}")
        return Coordinate(row, col)
    raise AddressError(str(key), f"Invalid cell key: {key!r}")


class SheetSnapshot(Mapping):
    """Read-only view of a sheet's raw cell content.

    Parameters
    ----------
    cells : Mapping
        Raw content keyed by ``(row, col)`` tuples or A1 address strings.
        Empty strings are dropped; absent cells read as ``""``.
    shape : tuple[int, int] | None
        Optional ``(n_rows, n_cols)`` bounds.  References outside the
        bounds are rejected by the evaluator.
    """

    __slots__ = ("_cells", "_shape")

    def __init__(
        self,
        cells: Mapping[Any, Any] | None = None,
        shape: tuple[int, int] | None = None,
    ) -> None:
        data: dict[Coordinate, str] = {}
        for key, value in (cells or {}).items():
            if value is None:
                continue
            text = str(value)
            if text == "":
                continue
            data[_to_coordinate(key)] = text
        self._cells = data
        self._shape = shape

    @classmethod
    def from_cells(cls, cells: Mapping[Any, Any], shape: tuple[int, int] | None = None) -> SheetSnapshot:
        return cls(cells, shape=shape)

    # Mapping protocol

    def __getitem__(self, key: Any) -> str:
        try:
            coord = _to_coordinate(key)
        except AddressError:
            raise KeyError(key) from None
        return self._cells[coord]

    def __iter__(self) -> Iterator[Coordinate]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __repr__(self) -> str:
        return f"SheetSnapshot({len(self._cells)} cells, shape={self._shape})"

    # ------------------------------------------------------------------

    @property
    def shape(self) -> tuple[int, int] | None:
        return self._shape

    def content(self, coord: tuple[int, int]) -> str:
        """Raw content at *coord*; ``""`` when the cell is empty."""
        return self._cells.get(Coordinate(*coord), "")

    def in_bounds(self, coord: tuple[int, int]) -> bool:
        if self._shape is None:
            return True
        n_rows, n_cols = self._shape
        return coord[0] < n_rows and coord[1] < n_cols

    def cells_in(self, cell_range: CellRange) -> Iterator[tuple[Coordinate, str]]:
        """Yield ``(coord, content)`` for stored cells inside *cell_range*, row-major."""
        area = cell_range.n_rows * cell_range.n_cols
        if area <= len(self._cells):
            for coord in cell_range.coordinates():
                text = self._cells.get(coord)
                if text is not None:
                    yield coord, text
            return
        # Sparse sheet: walk the stored cells instead of the empty rectangle.
        for coord in sorted(c for c in self._cells if c in cell_range):
            yield coord, self._cells[coord]

    def with_updates(self, updates: Mapping[Any, Any]) -> SheetSnapshot:
        """Return a new snapshot with *updates* applied; ``""`` clears a cell."""
        merged: dict[Any, Any] = dict(self._cells)
        for key, value in updates.items():
            merged[_to_coordinate(key)] = value
        return SheetSnapshot(merged, shape=self._shape)

    def to_a1_dict(self) -> dict[str, str]:
        """Raw content keyed by A1 address, row-major."""
        return {coord.to_a1(): self._cells[coord] for coord in sorted(self._cells)}
