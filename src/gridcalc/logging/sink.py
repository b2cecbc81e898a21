"""Event sinks: filesystem NDJSON with file locking, and in-memory.

Events are appended as one JSON line per event.  Two log destinations:

- ``<log_dir>/events.ndjson``  -- global event log
- ``<log_dir>/runs/<run_id>.ndjson``  -- per-run log

Writes use ``json.dumps(sort_keys=True)`` for deterministic output.
Each append acquires an exclusive ``fcntl.flock`` on the target file; on
platforms without ``fcntl`` locking is skipped.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Protocol

from gridcalc.logging.events import EventLevel, EventType, GridEvent

# fcntl is Unix only
try:
    import fcntl

    _HAS_FCNTL = True
except ImportError:
    _HAS_FCNTL = False

# Path-component validation: reject anything that could escape the logs dir
_SAFE_ID_RE = re.compile(r"^[A-Za-z0-9_\-]+$")


class DiagnosticSink(Protocol):
    """Anything that accepts events."""

    def write(self, event: GridEvent, *, run_id: str | None = None) -> None: ...


class MemorySink:
    """Keeps events in a list for the lifetime of the process."""

    def __init__(self) -> None:
        self.events: list[GridEvent] = []

    def write(self, event: GridEvent, *, run_id: str | None = None) -> None:
        self.events.append(event)

    def filter(
        self,
        *,
        level: EventLevel | str | None = None,
        event_type: EventType | str | None = None,
    ) -> list[GridEvent]:
        """Return recorded events matching *level* and *event_type*."""
        out = self.events
        if level is not None:
            out = [e for e in out if e.level == level]
        if event_type is not None:
            out = [e for e in out if e.event_type == event_type]
        return list(out)


class EventSink:
    """Append-only NDJSON log writer with file locking."""

    def __init__(self, log_dir: Path, *, fsync: bool = False) -> None:
        self.log_dir = Path(log_dir)
        self._fsync = fsync
        self.log_dir.mkdir(parents=True, exist_ok=True)
        (self.log_dir / "runs").mkdir(exist_ok=True)

    def write(self, event: GridEvent, *, run_id: str | None = None) -> None:
        """Append *event* to the global log and optionally the run log."""
        line = json.dumps(event.model_dump(mode="json"), sort_keys=True, default=str) + "\n"

        self._append(self.log_dir / "events.ndjson", line)

        if run_id and _SAFE_ID_RE.match(run_id):
            self._append(self.log_dir / "runs" / f"{run_id}.ndjson", line)

    # ------------------------------------------------------------------
    # Query helpers (used by CLI / tests)
    # ------------------------------------------------------------------

    def read_global(
        self,
        *,
        level: str | None = None,
        event_type: str | None = None,
        limit: int = 200,
    ) -> list[dict[str, Any]]:
        """Read events from the global log, most-recent-first, with filters."""
        events = self._read_ndjson(self.log_dir / "events.ndjson")
        if level:
            events = [e for e in events if e.get("level") == level]
        if event_type:
            events = [e for e in events if e.get("event_type") == event_type]
        events.reverse()
        return events[:limit]

    def read_run_log(self, run_id: str) -> list[dict[str, Any]]:
        """Read all events for a specific run."""
        if not _SAFE_ID_RE.match(run_id):
            return []
        return self._read_ndjson(self.log_dir / "runs" / f"{run_id}.ndjson")

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _append(self, path: Path, line: str) -> None:
        """Append a single line to *path* under exclusive file lock."""
        if _HAS_FCNTL:
            fd = os.open(str(path), os.O_WRONLY | os.O_CREAT | os.O_APPEND)
            try:
                fcntl.flock(fd, fcntl.LOCK_EX)
                os.write(fd, line.encode("utf-8"))
                if self._fsync:
                    os.fsync(fd)
            finally:
                fcntl.flock(fd, fcntl.LOCK_UN)
                os.close(fd)
        else:
            with open(path, "a", encoding="utf-8") as f:
                f.write(line)
                if self._fsync:
                    f.flush()
                    os.fsync(f.fileno())

    def _read_ndjson(self, path: Path) -> list[dict[str, Any]]:
        if not path.exists():
            return []
        events: list[dict[str, Any]] = []
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                events.append(json.loads(line))
            except json.JSONDecodeError:
                continue
        return events
