"""Command-line interface for gridcalc."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click

from gridcalc import __version__


@click.group()
@click.version_option(version=__version__, prog_name="gridcalc")
@click.option(
    "--project",
    "project_dir",
    default=".",
    type=click.Path(file_okay=False),
    help="Directory holding gridcalc.yaml (and logs/ when logging is enabled).",
)
@click.pass_context
def main(ctx: click.Context, project_dir: str) -> None:
    """gridcalc -- spreadsheet formula evaluation engine."""
    from gridcalc.config import load_config
    from gridcalc.logging import set_log_dir

    try:
        config = load_config(Path(project_dir))
    except (OSError, ValueError) as exc:
        raise click.ClickException(str(exc))
    if config.get("logging_enabled"):
        set_log_dir(
            Path(project_dir),
            fsync=bool(config.get("logging_fsync", False)),
            tail_bytes=config.get("logging_tail_bytes"),
        )
    ctx.obj = config


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _parse_overrides(overrides: tuple[str, ...]) -> dict[str, str]:
    cells: dict[str, str] = {}
    for item in overrides:
        if "=" not in item:
            raise click.ClickException(f"Invalid --set format: {item!r}. Use A1=value.")
        k, v = item.split("=", 1)
        cells[k.strip().upper()] = v
    return cells


def _load(sheet_path: str | None, overrides: tuple[str, ...] = ()) -> Any:
    from gridcalc.config import load_sheet
    from gridcalc.formulas.errors import AddressError
    from gridcalc.logging import EventType, emit_error
    from gridcalc.snapshot import SheetSnapshot

    try:
        snapshot = load_sheet(Path(sheet_path)) if sheet_path else SheetSnapshot()
        cells = _parse_overrides(overrides)
        return snapshot.with_updates(cells) if cells else snapshot
    except (OSError, ValueError, AddressError) as exc:
        emit_error(EventType.sheet_loaded, f"Failed to load sheet: {exc}", {"path": sheet_path})
        raise click.ClickException(str(exc))


# ---------------------------------------------------------------------------
# Eval
# ---------------------------------------------------------------------------


@main.command("eval")
@click.argument("formula")
@click.option("--sheet", "sheet_path", default=None, type=click.Path(exists=True, dir_okay=False), help="Sheet file to resolve references against.")
@click.option("--set", "overrides", multiple=True, help="Set a cell as A1=value (repeatable).")
@click.option("--strict", is_flag=True, help="Fail with the error message instead of printing the marker.")
@click.pass_obj
def eval_cmd(config: dict[str, Any], formula: str, sheet_path: str | None, overrides: tuple[str, ...], strict: bool) -> None:
    """Evaluate FORMULA and print its display value."""
    from gridcalc.engine import display_value, evaluate
    from gridcalc.formulas.errors import FormulaEvalError

    snapshot = _load(sheet_path, overrides)
    if strict:
        try:
            click.echo(evaluate(formula, snapshot))
        except FormulaEvalError as exc:
            raise click.ClickException(str(exc))
        return
    click.echo(display_value(formula, snapshot, marker=config["error_marker"]))


# ---------------------------------------------------------------------------
# Render
# ---------------------------------------------------------------------------


@main.command()
@click.argument("sheet_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--rows", "n_rows", default=None, type=int, help="Visible rows (default: sheet bounds or config).")
@click.option("--cols", "n_cols", default=None, type=int, help="Visible columns (default: sheet bounds or config).")
@click.option("--json", "as_json", is_flag=True, help="Output display values as JSON keyed by address.")
@click.pass_obj
def render(config: dict[str, Any], sheet_path: str, n_rows: int | None, n_cols: int | None, as_json: bool) -> None:
    """Print the display values of every cell in SHEET_PATH."""
    import polars as pl

    from gridcalc.engine import evaluate_grid, grid_frame

    snapshot = _load(sheet_path)
    if snapshot.shape is None:
        n_rows = n_rows if n_rows is not None else config["n_rows"]
        n_cols = n_cols if n_cols is not None else config["n_cols"]
    marker = config["error_marker"]

    if as_json:
        values = evaluate_grid(snapshot, n_rows, n_cols, marker=marker)
        click.echo(json.dumps({coord.to_a1(): v for coord, v in values.items()}, indent=2))
        return

    frame = grid_frame(snapshot, n_rows, n_cols, marker=marker)
    # Trim trailing empty rows for terminal output
    last = 0
    for i, row in enumerate(frame.iter_rows()):
        if any(row):
            last = i + 1
    with pl.Config(tbl_rows=-1, tbl_cols=-1):
        click.echo(frame.head(last))


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


@main.command()
@click.argument("sheet_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--range", "range_text", default=None, help="Range to analyze, e.g. A1:B5 (default: whole sheet).")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def context(sheet_path: str, range_text: str | None, as_json: bool) -> None:
    """Summarize the data in SHEET_PATH (or one range of it)."""
    from gridcalc.formulas.errors import AddressError
    from gridcalc.selection import analyze_range, describe

    snapshot = _load(sheet_path)
    try:
        ctx = analyze_range(snapshot, range_text)
    except AddressError as exc:
        raise click.ClickException(str(exc))
    if as_json:
        click.echo(json.dumps(ctx.model_dump(), indent=2))
    else:
        click.echo(describe(ctx))


# ---------------------------------------------------------------------------
# Apply
# ---------------------------------------------------------------------------


@main.command()
@click.argument("sheet_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("changes_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "output_path", default=None, type=click.Path(dir_okay=False), help="Write the result here instead of overwriting SHEET_PATH.")
def apply(sheet_path: str, changes_path: str, output_path: str | None) -> None:
    """Apply proposed edits from CHANGES_PATH to SHEET_PATH.

    CHANGES_PATH is a YAML list of ``{cell, value, reason, status}``
    entries.  Entries without a status are accepted; ``rejected`` ones
    are skipped.
    """
    import yaml
    from pydantic import ValidationError

    from gridcalc.changes import ChangeSet, PendingChange, propose_change
    from gridcalc.config import save_sheet
    from gridcalc.formulas.errors import AddressError

    snapshot = _load(sheet_path)
    try:
        entries = yaml.safe_load(Path(changes_path).read_text(encoding="utf-8")) or []
        if not isinstance(entries, list):
            raise ValueError("changes file must be a YAML list")
        proposed = []
        for entry in entries:
            change = propose_change(
                snapshot,
                str(entry["cell"]).upper(),
                str(entry["value"]),
                reason=entry.get("reason"),
                confidence=entry.get("confidence"),
            )
            status = entry.get("status", "pending")
            proposed.append(PendingChange.model_validate({**change.model_dump(), "status": status}))
    except (OSError, ValueError, KeyError, TypeError, yaml.YAMLError, AddressError, ValidationError) as exc:
        raise click.ClickException(f"Invalid changes file: {exc}")

    changes = ChangeSet(proposed)
    result = changes.accept_all(snapshot)
    save_sheet(result, Path(output_path or sheet_path))
    summary = changes.summary()
    click.echo(f"Applied {summary['accepted']} changes, skipped {summary['rejected']}.")


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@main.command()
@click.option("--level", default=None, type=click.Choice(["info", "warning", "error"]), help="Filter by level.")
@click.option("--type", "event_type", default=None, help="Filter by event type.")
@click.option("--limit", default=50, type=int, help="Maximum events to show.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def events(ctx: click.Context, level: str | None, event_type: str | None, limit: int, as_json: bool) -> None:
    """Show recent events from the project log, most recent first."""
    from gridcalc.logging.sink import EventSink

    project_dir = Path(ctx.parent.params["project_dir"])
    if not (project_dir / "logs").exists():
        raise click.ClickException(f"No logs directory under {project_dir}")
    sink = EventSink(project_dir)
    rows = sink.read_events(level=level, event_type=event_type, limit=limit)
    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return
    for row in rows:
        code = f" [{row['error_code']}]" if row.get("error_code") else ""
        click.echo(f"{row.get('ts', '')} {row.get('level', ''):7} {row.get('event_type', '')}{code}: {row.get('message', '')}")
