"""Structured event schema for grid evaluation runs.

All timestamps use UTC ISO-8601 with ``Z`` suffix.  Events are plain
pydantic models; where they go is decided by the sink handed to the
component that produces them (see :mod:`gridcalc.logging.sink`).
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class EventLevel(str, Enum):
    info = "info"
    warning = "warning"
    error = "error"


class EventType(str, Enum):
    # Run lifecycle
    run_started = "run_started"
    run_completed = "run_completed"

    # Cell resolution
    cell_error = "cell_error"
    internal_error = "internal_error"

    # Grid loading
    grid_warning = "grid_warning"


# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------

# Resolution
INTERNAL_RESOLUTION_ERROR = "internal_resolution_error"

# Grid loading
GRID_EXTRA_ROWS = "grid_extra_rows"
GRID_MISSING_ROWS = "grid_missing_rows"
GRID_EXTRA_COLUMNS = "grid_extra_columns"


# ---------------------------------------------------------------------------
# Event model
# ---------------------------------------------------------------------------


def _utc_now() -> str:
    """Return current UTC timestamp in ISO-8601 with Z suffix."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class GridEvent(BaseModel):
    """A single structured log event."""

    schema_version: int = 1
    ts: str = Field(default_factory=_utc_now)
    level: EventLevel
    event_type: EventType
    context: dict[str, Any] = Field(default_factory=dict)
    message: str = ""
    error_code: str | None = None


# ---------------------------------------------------------------------------
# Helper constructors for consistent attribution
# ---------------------------------------------------------------------------


def make_run_event(
    event_type: EventType,
    level: EventLevel,
    message: str,
    *,
    run_id: str | None = None,
    error_code: str | None = None,
    extra: dict[str, Any] | None = None,
) -> GridEvent:
    """Build an event with run attribution context."""
    ctx: dict[str, Any] = {}
    if run_id is not None:
        ctx["run_id"] = run_id
    if extra:
        ctx.update(extra)
    return GridEvent(
        level=level,
        event_type=event_type,
        message=message,
        context=ctx,
        error_code=error_code,
    )


def make_cell_event(
    event_type: EventType,
    level: EventLevel,
    message: str,
    *,
    cell_id: str,
    run_id: str | None = None,
    error_code: str | None = None,
) -> GridEvent:
    """Build an event attributed to a single cell."""
    return make_run_event(
        event_type,
        level,
        message,
        run_id=run_id,
        error_code=error_code,
        extra={"cell_id": cell_id},
    )
