"""A1-style cell address and range resolution.

Addresses are uppercase column letters followed by a 1-based row number
(``B12``).  Internally every cell is a zero-indexed ``Coordinate``.
Columns use bijective base-26 (A=0, Z=25, AA=26, ...), so the encoding
extends past ``Z`` even though the default grid stops at ``J``.
"""

from __future__ import annotations

import re
from typing import Iterator, NamedTuple

from gridcalc.formulas.errors import AddressError

_ADDR_RE = re.compile(r"^([A-Z]+)(\d+)$")


class Coordinate(NamedTuple):
    """Zero-indexed (row, col) pair identifying one cell."""

    row: int
    col: int

    def to_a1(self) -> str:
        return format_cell_address(self)


class CellRange(NamedTuple):
    """Rectangle of cells, normalized so start <= end on both axes."""

    start: Coordinate
    end: Coordinate

    @property
    def n_rows(self) -> int:
        return self.end.row - self.start.row + 1

    @property
    def n_cols(self) -> int:
        return self.end.col - self.start.col + 1

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, tuple) or len(item) != 2:
            return False
        row, col = item
        return (
            self.start.row <= row <= self.end.row
            and self.start.col <= col <= self.end.col
        )

    def coordinates(self) -> Iterator[Coordinate]:
        """Iterate every coordinate in the rectangle, row-major."""
        for r in range(self.start.row, self.end.row + 1):
            for c in range(self.start.col, self.end.col + 1):
                yield Coordinate(r, c)

    def to_a1(self) -> str:
        return f"{format_cell_address(self.start)}:{format_cell_address(self.end)}"


def col_letter_to_index(letters: str) -> int:
    """Convert column letter(s) to 0-based index.  A=0, B=1, ..., Z=25, AA=26."""
    if not letters or not letters.isascii() or not letters.isupper() or not letters.isalpha():
        raise AddressError(letters, f"Invalid column letters: {letters!r}")
    idx = 0
    for ch in letters:
        idx = idx * 26 + (ord(ch) - ord("A") + 1)
    return idx - 1


def index_to_col_letter(idx: int) -> str:
    """Convert 0-based column index to letter(s).  0=A, 25=Z, 26=AA."""
    if idx < 0:
        raise AddressError(str(idx), f"Negative column index: {idx}")
    result = ""
    n = idx + 1
    while n > 0:
        n, rem = divmod(n - 1, 26)
        result = chr(65 + rem) + result
    return result


def parse_cell_address(text: str) -> Coordinate:
    """Parse ``'B12'`` -> ``Coordinate(row=11, col=1)``.

    Raises:
        AddressError: If the text is not letters-then-digits or the row
            number is below 1.
    """
    m = _ADDR_RE.match(text.strip())
    if not m:
        raise AddressError(text)
    row_number = int(m.group(2))
    if row_number < 1:
        raise AddressError(text, f"Row number must be 1 or greater: {text!r}")
    return Coordinate(row_number - 1, col_letter_to_index(m.group(1)))


def format_cell_address(coord: tuple[int, int]) -> str:
    """Build a cell address from a 0-based (row, col) pair."""
    row, col = coord
    if row < 0:
        raise AddressError(str(coord), f"Negative row index: {row}")
    return f"{index_to_col_letter(col)}{row + 1}"


def parse_range(text: str) -> CellRange:
    """Parse ``'A1:B2'`` into a normalized ``CellRange``.

    The corners may be given in either order: ``B2:A1`` resolves to the
    same range as ``A1:B2``.

    Raises:
        AddressError: If there is not exactly one ``:`` or either corner
            is malformed.
    """
    parts = text.split(":")
    if len(parts) != 2:
        raise AddressError(text, f"Invalid range: {text!r}")
    a = parse_cell_address(parts[0])
    b = parse_cell_address(parts[1])
    return CellRange(
        Coordinate(min(a.row, b.row), min(a.col, b.col)),
        Coordinate(max(a.row, b.row), max(a.col, b.col)),
    )


def expand_range(cell_range: CellRange) -> list[Coordinate]:
    """Expand a range into a flat list of coordinates (row-major)."""
    return list(cell_range.coordinates())
