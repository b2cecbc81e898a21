"""Display rendering of an evaluated grid."""

from __future__ import annotations

import polars as pl

from gridcalc.cell_graph import CellGraph
from gridcalc.formulas.parser import col_to_letter
from gridcalc.grid import STRING_MARKER, UNKNOWN_MARKER, CellKind, Grid


def display_rows(grid: Grid, graph: CellGraph) -> list[list[str]]:
    """Build the matrix of display strings.

    String literals lose their leading quote, formula cells show their
    resolved value and unsupported cells show ``#E_UNKNOWN``.  Numbers and
    empty cells are shown as written.
    """
    rows: list[list[str]] = []
    for r in range(grid.row_count):
        row: list[str] = []
        for c in range(grid.column_count):
            kind = grid.kind(r, c)
            if kind == CellKind.formula:
                row.append(graph.get_display_value(r, c))
            elif kind == CellKind.string_literal:
                row.append(grid.get_raw_cell(r, c)[len(STRING_MARKER):])
            elif kind == CellKind.invalid:
                row.append(UNKNOWN_MARKER)
            else:
                row.append(grid.get_raw_cell(r, c))
        rows.append(row)
    return rows


def render_text(rows: list[list[str]]) -> str:
    """Tab-terminated cells, one line per row."""
    return "".join("".join(f"{cell}\t" for cell in row) + "\n" for row in rows)


def to_frame(rows: list[list[str]]) -> pl.DataFrame:
    """Display matrix as a string DataFrame with column-letter headers."""
    width = len(rows[0]) if rows else 0
    columns = [col_to_letter(c) for c in range(width)]
    return pl.DataFrame(
        {name: [row[c] for row in rows] for c, name in enumerate(columns)},
        schema={name: pl.Utf8 for name in columns},
    )
