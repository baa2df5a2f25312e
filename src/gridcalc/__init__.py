"""gridcalc -- spreadsheet formula evaluation engine.

Public API::

    from gridcalc import SheetSnapshot, evaluate, display_value
"""

__version__ = "0.1.0"

from gridcalc.addresses import (  # noqa: E402
    CellRange,
    Coordinate,
    format_cell_address,
    parse_cell_address,
    parse_range,
)
from gridcalc.engine import display_value, evaluate, evaluate_grid, grid_frame  # noqa: E402
from gridcalc.formulas.errors import ERROR_MARKER  # noqa: E402
from gridcalc.snapshot import SheetSnapshot  # noqa: E402

__all__ = [
    "ERROR_MARKER",
    "CellRange",
    "Coordinate",
    "SheetSnapshot",
    "__version__",
    "display_value",
    "evaluate",
    "evaluate_grid",
    "format_cell_address",
    "grid_frame",
    "parse_cell_address",
    "parse_range",
]
