"""Structured event logging for gridcalc.

Provides a unified event schema, a filesystem NDJSON sink and an
in-memory sink.  Components receive a sink explicitly; nothing here is
process-global.
"""

from gridcalc.logging.events import (
    EventLevel,
    EventType,
    GridEvent,
    make_cell_event,
    make_run_event,
)
from gridcalc.logging.sink import DiagnosticSink, EventSink, MemorySink

__all__ = [
    "DiagnosticSink",
    "EventLevel",
    "EventSink",
    "EventType",
    "GridEvent",
    "MemorySink",
    "make_cell_event",
    "make_run_event",
]
