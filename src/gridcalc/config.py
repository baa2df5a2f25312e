"""Configuration and sheet-file loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from gridcalc.logging.events import EventType, emit_info
from gridcalc.snapshot import SheetSnapshot

CONFIG_FILENAME = "gridcalc.yaml"

DEFAULT_CONFIG = {
    "n_rows": 50,
    "n_cols": 10,  # A-J
    "error_marker": "#ERROR",
    "logging_enabled": False,
    "logging_fsync": False,
    "logging_tail_bytes": 2_097_152,  # 2 MB
}


def _read_yaml_mapping(path: Path) -> dict[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"{path}: invalid YAML: {exc}") from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a YAML mapping, got {type(raw).__name__}")
    return raw


def load_config(directory: Path) -> dict[str, Any]:
    """Load ``gridcalc.yaml`` from *directory*, merged over ``DEFAULT_CONFIG``.

    Missing file means defaults.  Unknown keys are kept as-is.

    Raises:
        ValueError: If the file is not valid YAML or not a mapping.
    """
    config = dict(DEFAULT_CONFIG)
    path = Path(directory) / CONFIG_FILENAME
    if path.exists():
        config.update(_read_yaml_mapping(path))
    return config


def load_sheet(path: Path) -> SheetSnapshot:
    """Load a sheet file into a snapshot.

    The file is YAML::

        n_rows: 50      # optional bounds
        n_cols: 10
        cells:
          A1: "4"
          A2: "6"
          A3: "=AVERAGE(A1:A2)"

    Cell values are kept as raw strings (YAML numbers are stringified).

    Raises:
        ValueError: If the file is not valid YAML, or the document or its
            ``cells`` block is not a mapping.
        AddressError: If a cell key is not a valid address.
    """
    path = Path(path)
    doc = _read_yaml_mapping(path)
    cells = doc.get("cells") or {}
    if not isinstance(cells, dict):
        raise ValueError(f"{path}: 'cells' must be a mapping of address -> content")
    shape = None
    if "n_rows" in doc or "n_cols" in doc:
        shape = (
            int(doc.get("n_rows", DEFAULT_CONFIG["n_rows"])),
            int(doc.get("n_cols", DEFAULT_CONFIG["n_cols"])),
        )
    snapshot = SheetSnapshot({str(k): v for k, v in cells.items()}, shape=shape)
    emit_info(
        EventType.sheet_loaded,
        f"Loaded {len(snapshot)} cells from {path.name}",
        {"path": str(path), "n_cells": len(snapshot)},
    )
    return snapshot


def save_sheet(snapshot: SheetSnapshot, path: Path) -> None:
    """Write *snapshot* as a sheet file readable by ``load_sheet``."""
    doc: dict[str, Any] = {}
    if snapshot.shape is not None:
        doc["n_rows"], doc["n_cols"] = snapshot.shape
    doc["cells"] = snapshot.to_a1_dict()
    Path(path).write_text(yaml.safe_dump(doc, sort_keys=False, allow_unicode=True), encoding="utf-8")
