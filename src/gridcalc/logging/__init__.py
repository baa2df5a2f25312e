"""Structured event logging for gridcalc.

Provides a unified event schema, filesystem NDJSON sink, and safe
emit helpers that never raise uncaught exceptions.
"""

from gridcalc.logging.events import (
    EventLevel,
    EventType,
    GridcalcEvent,
    clear_log_dir,
    emit,
    emit_error,
    emit_info,
    emit_warning,
    get_sink,
    set_log_dir,
    truncate_context,
)
from gridcalc.logging.sink import EventSink

__all__ = [
    "EventLevel",
    "EventSink",
    "EventType",
    "GridcalcEvent",
    "clear_log_dir",
    "emit",
    "emit_error",
    "emit_info",
    "emit_warning",
    "get_sink",
    "set_log_dir",
    "truncate_context",
]
