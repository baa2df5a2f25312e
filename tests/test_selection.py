"""Tests for range context analysis."""

from __future__ import annotations

import pytest

from gridcalc.formulas.errors import AddressError
from gridcalc.selection import analyze_range, describe, detect_patterns
from gridcalc.snapshot import SheetSnapshot


class TestAnalyzeRange:
    def test_numeric_column(self) -> None:
        snap = SheetSnapshot({"A1": "1", "A2": "2", "A3": "3", "B1": "ignored"})
        ctx = analyze_range(snap, "A1:A3")
        assert ctx.range == "A1:A3"
        assert (ctx.n_rows, ctx.n_cols) == (3, 1)
        assert ctx.has_numbers and not ctx.has_text and not ctx.has_formulas
        assert ctx.numeric_count == 3
        assert ctx.total == 6
        assert ctx.mean == 2
        assert (ctx.minimum, ctx.maximum) == (1, 3)
        assert "numeric sequence (mean step 1.00)" in ctx.patterns

    def test_mixed_content(self) -> None:
        snap = SheetSnapshot({"A1": "Item", "B1": "=SUM(B2:B3)", "B2": "5"})
        ctx = analyze_range(snap, "A1:B3")
        assert ctx.has_text and ctx.has_formulas and ctx.has_numbers
        assert ctx.preview == ["Item", "=SUM(B2:B3)", "5"]
        assert ctx.numeric_count == 1

    def test_empty_range(self) -> None:
        ctx = analyze_range(SheetSnapshot({"Z9": "1"}), "A1:B2")
        assert ctx.is_empty
        assert ctx.total is None
        assert ctx.patterns == []

    def test_whole_sheet_uses_bounding_box(self) -> None:
        snap = SheetSnapshot({"B2": "1", "D5": "x"})
        ctx = analyze_range(snap)
        assert ctx.range == "B2:D5"
        assert (ctx.n_rows, ctx.n_cols) == (4, 3)

    def test_empty_sheet(self) -> None:
        ctx = analyze_range(SheetSnapshot())
        assert ctx.is_empty
        assert ctx.range is None

    def test_preview_limited_to_five(self) -> None:
        snap = SheetSnapshot({f"A{i}": str(i) for i in range(1, 10)})
        assert analyze_range(snap, "A1:A9").preview == ["1", "2", "3", "4", "5"]

    def test_malformed_range(self) -> None:
        with pytest.raises(AddressError):
            analyze_range(SheetSnapshot(), "A1-B2")


class TestDetectPatterns:
    def test_constant_sequence_not_reported(self) -> None:
        assert detect_patterns(["5", "5", "5"], [5, 5, 5]) == []

    def test_two_numbers_not_a_sequence(self) -> None:
        assert detect_patterns(["1", "2"], [1, 2]) == []

    def test_dates_percentages_currency(self) -> None:
        patterns = detect_patterns(["2024-01-15", "15%", "$30"], [15, 30])
        assert patterns == ["contains dates", "contains percentages", "contains currency amounts"]


class TestDescribe:
    def test_empty(self) -> None:
        assert describe(analyze_range(SheetSnapshot())) == "The selection is empty."

    def test_summary_lines(self) -> None:
        snap = SheetSnapshot({"A1": "2", "A2": "4", "A3": "label"})
        text = describe(analyze_range(snap, "A1:A3"))
        assert "Selection: A1:A3 (3 rows x 1 columns)" in text
        assert "Contains: numbers, text" in text
        assert "sum 6, mean 3, min 2, max 4" in text
        assert text.endswith("Preview: 2, 4, label")

    def test_overflowing_total(self) -> None:
        snap = SheetSnapshot({"A1": "1e308", "A2": "1e308"})
        text = describe(analyze_range(snap, "A1:A2"))
        assert "sum inf, mean inf" in text
