"""Review state for proposed cell edits.

The assistant proposes edits as ``PendingChange`` records.  Each is
accepted or rejected individually or in bulk; accepted edits are applied
to a snapshot, producing a new snapshot.  Snapshots are never mutated.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import Literal

from pydantic import BaseModel, Field

from gridcalc.addresses import Coordinate, parse_cell_address
from gridcalc.logging.events import EventType, emit_info
from gridcalc.snapshot import SheetSnapshot

ChangeStatus = Literal["pending", "accepted", "rejected"]


class PendingChange(BaseModel):
    """One proposed edit to a single cell."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    row: int = Field(ge=0)
    col: int = Field(ge=0)
    old_value: str = ""
    new_value: str
    reason: str | None = None
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    status: ChangeStatus = "pending"

    @property
    def coord(self) -> Coordinate:
        return Coordinate(self.row, self.col)


def propose_change(
    snapshot: SheetSnapshot,
    cell: str | tuple[int, int],
    new_value: str,
    *,
    reason: str | None = None,
    confidence: float | None = None,
) -> PendingChange:
    """Build a pending change, recording the cell's current content as ``old_value``."""
    coord = parse_cell_address(cell) if isinstance(cell, str) else Coordinate(*cell)
    return PendingChange(
        row=coord.row,
        col=coord.col,
        old_value=snapshot.content(coord),
        new_value=new_value,
        reason=reason,
        confidence=confidence,
    )


class ChangeSet:
    """Ordered collection of proposed edits under review.

    Usage::

        cs = ChangeSet([propose_change(snap, "A1", "42")])
        cs.reject(cs.changes[0].id)
        snap = cs.accept_all(snap)
    """

    def __init__(self, changes: Iterable[PendingChange] = ()) -> None:
        self._changes: list[PendingChange] = list(changes)
        if self._changes:
            emit_info(
                EventType.changes_proposed,
                f"{len(self._changes)} cell changes proposed",
                {"n_changes": len(self._changes)},
            )

    @property
    def changes(self) -> list[PendingChange]:
        return list(self._changes)

    def __len__(self) -> int:
        return len(self._changes)

    def _index(self, change_id: str) -> int:
        for i, change in enumerate(self._changes):
            if change.id == change_id:
                return i
        raise KeyError(f"Unknown change id: {change_id!r}")

    def _set_status(self, change_id: str, status: ChangeStatus) -> PendingChange:
        i = self._index(change_id)
        if self._changes[i].status != status:
            self._changes[i] = self._changes[i].model_copy(update={"status": status})
        return self._changes[i]

    def accept(self, change_id: str) -> PendingChange:
        """Mark one change accepted.  Idempotent; a rejected change may be re-accepted.

        Raises:
            KeyError: If no change has *change_id*.
        """
        return self._set_status(change_id, "accepted")

    def reject(self, change_id: str) -> PendingChange:
        """Mark one change rejected.  Idempotent; an accepted change may be re-rejected.

        Raises:
            KeyError: If no change has *change_id*.
        """
        return self._set_status(change_id, "rejected")

    def pending(self) -> list[PendingChange]:
        return [c for c in self._changes if c.status == "pending"]

    def accepted(self) -> list[PendingChange]:
        return [c for c in self._changes if c.status == "accepted"]

    def apply_accepted(self, snapshot: SheetSnapshot) -> SheetSnapshot:
        """Return *snapshot* with every accepted change applied, in order."""
        updates = {c.coord: c.new_value for c in self.accepted()}
        if not updates:
            return snapshot
        emit_info(
            EventType.changes_applied,
            f"Applied {len(updates)} cell changes",
            {"cells": [coord.to_a1() for coord in updates]},
        )
        return snapshot.with_updates(updates)

    def accept_all(self, snapshot: SheetSnapshot) -> SheetSnapshot:
        """Accept every pending change and apply all accepted changes to *snapshot*."""
        for change in self.pending():
            self._set_status(change.id, "accepted")
        return self.apply_accepted(snapshot)

    def reject_all(self) -> None:
        """Reject every pending change."""
        rejected = self.pending()
        for change in rejected:
            self._set_status(change.id, "rejected")
        if rejected:
            emit_info(
                EventType.changes_rejected,
                f"Rejected {len(rejected)} cell changes",
                {"cells": [c.coord.to_a1() for c in rejected]},
            )

    def summary(self) -> dict[str, int]:
        """Count of changes by status."""
        counts = {"pending": 0, "accepted": 0, "rejected": 0}
        for change in self._changes:
            counts[change.status] += 1
        return counts
