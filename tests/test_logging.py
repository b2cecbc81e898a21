"""Tests for the structured event schema and sinks."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from gridcalc.logging import (
    EventLevel,
    EventSink,
    EventType,
    GridEvent,
    MemorySink,
    make_cell_event,
    make_run_event,
)


@pytest.fixture
def event_sink(tmp_path: Path) -> EventSink:
    return EventSink(tmp_path / "logs")


class TestGridEvent:
    def test_event_defaults(self):
        evt = GridEvent(level=EventLevel.info, event_type=EventType.run_started, message="hello")
        assert evt.schema_version == 1
        assert evt.ts.endswith("Z")
        assert evt.context == {}
        assert evt.error_code is None

    def test_make_run_event(self):
        evt = make_run_event(
            EventType.run_completed, EventLevel.info, "done",
            run_id="r1", extra={"errors": 2},
        )
        assert evt.context == {"run_id": "r1", "errors": 2}

    def test_make_cell_event(self):
        evt = make_cell_event(
            EventType.cell_error, EventLevel.info, "bad",
            cell_id="B2", error_code="#E_CROSS_REF",
        )
        assert evt.context == {"cell_id": "B2"}
        assert evt.error_code == "#E_CROSS_REF"


class TestEventSink:
    def test_creates_directories(self, event_sink: EventSink):
        assert event_sink.log_dir.is_dir()
        assert (event_sink.log_dir / "runs").is_dir()

    def test_write_global_and_run(self, event_sink: EventSink):
        evt = make_run_event(EventType.run_started, EventLevel.info, "go", run_id="abc-1")
        event_sink.write(evt, run_id="abc-1")

        lines = (event_sink.log_dir / "events.ndjson").read_text().splitlines()
        assert len(lines) == 1
        record = json.loads(lines[0])
        assert record["event_type"] == "run_started"
        assert record["level"] == "info"
        assert event_sink.read_run_log("abc-1")[0]["message"] == "go"

    def test_unsafe_run_id_not_written(self, event_sink: EventSink):
        evt = make_run_event(EventType.run_started, EventLevel.info, "go")
        event_sink.write(evt, run_id="../escape")
        assert list((event_sink.log_dir / "runs").iterdir()) == []
        assert event_sink.read_run_log("../escape") == []

    def test_read_global_filters_most_recent_first(self, event_sink: EventSink):
        event_sink.write(make_run_event(EventType.run_started, EventLevel.info, "one"))
        event_sink.write(make_cell_event(
            EventType.internal_error, EventLevel.error, "two", cell_id="A1",
        ))
        event_sink.write(make_run_event(EventType.run_completed, EventLevel.info, "three"))

        assert [e["message"] for e in event_sink.read_global()] == ["three", "two", "one"]
        assert [e["message"] for e in event_sink.read_global(level="error")] == ["two"]
        assert event_sink.read_global(limit=1)[0]["message"] == "three"

    def test_skips_corrupt_lines(self, event_sink: EventSink):
        path = event_sink.log_dir / "events.ndjson"
        path.write_text("not json\n")
        event_sink.write(make_run_event(EventType.run_started, EventLevel.info, "ok"))
        assert [e["message"] for e in event_sink.read_global()] == ["ok"]


class TestMemorySink:
    def test_filter(self):
        sink = MemorySink()
        sink.write(make_run_event(EventType.run_started, EventLevel.info, "a"))
        sink.write(make_cell_event(EventType.cell_error, EventLevel.info, "b", cell_id="A1"))
        assert [e.message for e in sink.filter(event_type=EventType.cell_error)] == ["b"]
        assert len(sink.filter(level="info")) == 2
        assert sink.filter(level=EventLevel.error) == []
