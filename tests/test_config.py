"""Tests for configuration and sheet-file loading."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from gridcalc.config import DEFAULT_CONFIG, load_config, load_sheet, save_sheet
from gridcalc.engine import evaluate
from gridcalc.formulas.errors import AddressError
from gridcalc.snapshot import SheetSnapshot


class TestLoadConfig:
    def test_defaults_when_missing(self, tmp_path: Path) -> None:
        assert load_config(tmp_path) == DEFAULT_CONFIG

    def test_default_grid_is_a_to_j_by_50(self) -> None:
        assert DEFAULT_CONFIG["n_rows"] == 50
        assert DEFAULT_CONFIG["n_cols"] == 10
        assert DEFAULT_CONFIG["error_marker"] == "#ERROR"

    def test_overrides_merge(self, tmp_path: Path) -> None:
        (tmp_path / "gridcalc.yaml").write_text("n_rows: 100\nerror_marker: '#ERR!'\ncustom: 1\n")
        config = load_config(tmp_path)
        assert config["n_rows"] == 100
        assert config["n_cols"] == 10
        assert config["error_marker"] == "#ERR!"
        assert config["custom"] == 1

    def test_empty_file(self, tmp_path: Path) -> None:
        (tmp_path / "gridcalc.yaml").write_text("")
        assert load_config(tmp_path) == DEFAULT_CONFIG

    def test_invalid_yaml_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "gridcalc.yaml").write_text("n_rows: [1, 2\n")
        with pytest.raises(ValueError, match="invalid YAML"):
            load_config(tmp_path)

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "gridcalc.yaml").write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(tmp_path)


class TestLoadSheet:
    def test_cells_and_bounds(self, tmp_path: Path) -> None:
        path = tmp_path / "sheet.yaml"
        path.write_text(yaml.safe_dump({
            "n_rows": 5,
            "n_cols": 3,
            "cells": {"A1": 4, "A2": "6", "A3": "=AVERAGE(A1:A2)"},
        }))
        snap = load_sheet(path)
        assert snap.shape == (5, 3)
        assert snap["A1"] == "4"
        assert evaluate(snap["A3"], snap) == "5"

    def test_unbounded_without_dimensions(self, tmp_path: Path) -> None:
        path = tmp_path / "sheet.yaml"
        path.write_text("cells:\n  B2: hello\n")
        snap = load_sheet(path)
        assert snap.shape is None
        assert snap["B2"] == "hello"

    def test_bad_cells_block(self, tmp_path: Path) -> None:
        path = tmp_path / "sheet.yaml"
        path.write_text("cells: [1, 2]\n")
        with pytest.raises(ValueError, match="cells"):
            load_sheet(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "sheet.yaml"
        path.write_text("cells: {A1: [unclosed\n")
        with pytest.raises(ValueError, match="invalid YAML"):
            load_sheet(path)

    def test_bad_address(self, tmp_path: Path) -> None:
        path = tmp_path / "sheet.yaml"
        path.write_text("cells:\n  hello: 1\n")
        with pytest.raises(AddressError):
            load_sheet(path)

    def test_save_round_trip(self, tmp_path: Path) -> None:
        snap = SheetSnapshot({"A1": "1", "B3": "=A1*2", "C1": "text: with colon"}, shape=(10, 4))
        path = tmp_path / "out.yaml"
        save_sheet(snap, path)
        loaded = load_sheet(path)
        assert loaded == snap
        assert loaded.shape == (10, 4)
