"""Grid storage, cell classification and the tab-separated input format.

Input format::

    3	4
    12	=C2	3	'Sample
    =A1+B1*C1/5	=A2*B1	=B3-C3	'Spread
    'Test	=4-3	5	'Sheet

The first line holds the row and column counts.  Every following line is a
row of tab-separated cells.  Rows or columns beyond the declared size are
dropped; missing ones are empty cells.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from gridcalc.formulas.parser import MAX_COLUMNS, make_addr
from gridcalc.logging.events import (
    GRID_EXTRA_COLUMNS,
    GRID_EXTRA_ROWS,
    GRID_MISSING_ROWS,
    EventLevel,
    EventType,
    make_run_event,
)
from gridcalc.logging.sink import DiagnosticSink

FORMULA_MARKER = "="
STRING_MARKER = "'"
UNKNOWN_MARKER = "#E_UNKNOWN"


class GridFormatError(ValueError):
    """The grid text cannot be read (bad header or size)."""


class CellKind(str, Enum):
    number = "number"
    string_literal = "string_literal"
    formula = "formula"
    empty = "empty"
    invalid = "invalid"


def classify(text: str) -> CellKind:
    """Tag raw cell text with its :class:`CellKind`.

    Numbers are non-negative integers written with ASCII digits only.
    """
    if text == "":
        return CellKind.empty
    if text.startswith(FORMULA_MARKER):
        return CellKind.formula
    if text.startswith(STRING_MARKER):
        return CellKind.string_literal
    if text.isascii() and text.isdigit():
        return CellKind.number
    return CellKind.invalid


class FormulaRecord(BaseModel):
    """A formula cell found at load time; *body* excludes the ``=``."""

    model_config = ConfigDict(frozen=True)

    row: int
    col: int
    body: str

    @property
    def cell_id(self) -> str:
        return make_addr(self.row, self.col)


class Grid:
    """Immutable rectangular table of raw cell text.

    Parameters
    ----------
    cells : list[list[str]]
        Row-major raw text.  Short rows are padded with empty cells and
        long rows are truncated to *column_count*.
    row_count, column_count : int
        Declared grid size.  At most 52 columns are supported.
    """

    def __init__(self, cells: list[list[str]], row_count: int, column_count: int) -> None:
        if row_count <= 0 or column_count <= 0:
            raise GridFormatError(
                f"Incorrect table size: rows={row_count}, cols={column_count}"
            )
        if column_count > MAX_COLUMNS:
            raise GridFormatError(
                f"At most {MAX_COLUMNS} columns are supported, got {column_count}"
            )
        self._row_count = row_count
        self._column_count = column_count
        self._cells: list[list[str]] = []
        for r in range(row_count):
            row = list(cells[r][:column_count]) if r < len(cells) else []
            row.extend([""] * (column_count - len(row)))
            self._cells.append(row)
        self._formula_records = [
            FormulaRecord(row=r, col=c, body=text[len(FORMULA_MARKER):])
            for r, row in enumerate(self._cells)
            for c, text in enumerate(row)
            if classify(text) == CellKind.formula
        ]

    @classmethod
    def from_rows(cls, rows: list[list[str]]) -> Grid:
        """Build a grid sized to fit *rows*."""
        return cls(rows, len(rows), max((len(r) for r in rows), default=0))

    @property
    def row_count(self) -> int:
        return self._row_count

    @property
    def column_count(self) -> int:
        return self._column_count

    @property
    def formula_records(self) -> list[FormulaRecord]:
        """Formula cells in row-major order."""
        return list(self._formula_records)

    def get_raw_cell(self, row: int, col: int) -> str:
        return self._cells[row][col]

    def kind(self, row: int, col: int) -> CellKind:
        return classify(self._cells[row][col])

    def cell_id(self, row: int, col: int) -> str:
        return make_addr(row, col)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _parse_header(line: str) -> tuple[int, int]:
    parts = line.split()
    if len(parts) < 2:
        raise GridFormatError(f"Incorrect table header: {line!r}")
    try:
        rows, cols = int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise GridFormatError(f"Incorrect table header: {line!r}") from exc
    if rows <= 0 or cols <= 0:
        raise GridFormatError(f"Incorrect table header: rows={rows}, cols={cols}")
    return rows, cols


def load_grid(text: str, *, sink: DiagnosticSink | None = None, warnings: bool = True) -> Grid:
    """Parse grid text (header line plus tab-separated rows).

    Args:
        text: The whole input.
        sink: Receives ``grid_warning`` events for size mismatches.
        warnings: Set to ``False`` to suppress size warnings.

    Raises:
        GridFormatError: If the header is missing or invalid.
    """
    # Rows end at "\n" only; other line-break characters are cell content.
    lines = [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]
    if lines[-1] == "":
        lines.pop()
    if not lines:
        raise GridFormatError("Empty input: missing table header")
    row_count, column_count = _parse_header(lines[0])
    body = lines[1:]

    def warn(code: str, message: str, **extra: int) -> None:
        if sink is not None and warnings:
            sink.write(make_run_event(
                EventType.grid_warning, EventLevel.warning, message,
                error_code=code, extra=extra,
            ))

    if len(body) > row_count:
        warn(GRID_EXTRA_ROWS, "More lines than expected; skipping the remaining lines",
             expected=row_count, found=len(body))
        body = body[:row_count]
    elif len(body) < row_count:
        warn(GRID_MISSING_ROWS, "Fewer lines than expected; missing rows are empty",
             expected=row_count, found=len(body))

    rows: list[list[str]] = []
    for i, line in enumerate(body):
        cells = line.split("\t")
        if len(cells) > column_count:
            warn(GRID_EXTRA_COLUMNS, f"Extra columns detected in line #{i + 1}; skipping",
                 line=i + 1, expected=column_count, found=len(cells))
        rows.append(cells)

    return Grid(rows, row_count, column_count)


def load_grid_file(path: Path | str, **kwargs) -> Grid:
    """Read and parse a grid file.  See :func:`load_grid` for *kwargs*.

    Raises:
        GridFormatError: If the file is not UTF-8 text or the header is
            invalid.
    """
    try:
        text = Path(path).read_bytes().decode("utf-8")
    except UnicodeDecodeError as exc:
        raise GridFormatError(f"{path} is not UTF-8 text") from exc
    return load_grid(text, **kwargs)
