"""Shared fixtures for gridcalc tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from gridcalc.cell_graph import CellGraph
from gridcalc.grid import Grid
from gridcalc.logging.sink import MemorySink

SAMPLE_GRID = (
    "3\t4\n"
    "12\t=C2\t3\t'Sample\n"
    "=A1+B1*C1/5\t=A2*B1\t=B3-C3\t'Spread\n"
    "'Test\t=4-3\t5\t'Sheet\n"
)

SAMPLE_OUTPUT = (
    "12\t-4\t3\tSample\t\n"
    "4\t-16\t-4\tSpread\t\n"
    "Test\t1\t5\tSheet\t\n"
)


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def evaluate(sink: MemorySink):
    """Run a grid given as rows and return the evaluated CellGraph."""

    def _evaluate(rows: list[list[str]], **kwargs) -> CellGraph:
        graph = CellGraph(Grid.from_rows(rows), sink=sink, **kwargs)
        graph.run()
        return graph

    return _evaluate


@pytest.fixture
def sample_file(tmp_path: Path) -> Path:
    path = tmp_path / "sample.tsv"
    path.write_text(SAMPLE_GRID)
    return path
