"""Command-line interface for gridcalc."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click

from gridcalc import __version__


@click.group()
@click.version_option(version=__version__, prog_name="gridcalc")
def main() -> None:
    """gridcalc -- evaluate a tab-separated grid of flat arithmetic formulas."""


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _read_source(source: str) -> str:
    if source == "-":
        return click.get_text_stream("stdin").read()
    path = Path(source)
    if not path.exists():
        raise click.ClickException(f"No such file: {source}")
    try:
        return path.read_bytes().decode("utf-8")
    except UnicodeDecodeError as e:
        raise click.ClickException(f"{source} is not UTF-8 text: {e.reason} at byte {e.start}")


def _evaluate(
    source: str,
    config_path: str | None,
    log_dir: str | None,
    max_depth: int | None,
    lenient: bool,
) -> tuple[Any, Any, Any]:
    """Load config and grid, run the evaluation.  Returns (grid, graph, sink)."""
    from gridcalc.cell_graph import CellGraph
    from gridcalc.grid import GridFormatError, load_grid
    from gridcalc.logging.sink import EventSink, MemorySink
    from gridcalc.project import ConfigError, load_config

    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e))
    if max_depth is not None:
        config["max_depth"] = max_depth
    if lenient:
        config["strict_formulas"] = False
    if log_dir is not None:
        config["logging_dir"] = log_dir

    if config["logging_dir"]:
        sink = EventSink(Path(config["logging_dir"]), fsync=config["logging_fsync"])
    else:
        sink = MemorySink()

    try:
        grid = load_grid(_read_source(source), sink=sink, warnings=config["grid_warnings"])
    except GridFormatError as e:
        raise click.ClickException(str(e))

    graph = CellGraph(
        grid,
        sink=sink,
        max_depth=config["max_depth"],
        strict=config["strict_formulas"],
    )
    graph.run()
    return grid, graph, sink


_common_options = [
    click.option("--config", "config_path", default=None, type=click.Path(exists=True), help="gridcalc.yaml file or directory."),
    click.option("--log-dir", "log_dir", default=None, type=click.Path(), help="Write NDJSON events to this directory."),
    click.option("--max-depth", "max_depth", default=None, type=click.IntRange(min=1), help="Reference chain depth limit."),
    click.option("--lenient", is_flag=True, help="Accept formulas that end in an incomplete state."),
]


def _with_common_options(func):
    for option in reversed(_common_options):
        func = option(func)
    return func


# ---------------------------------------------------------------------------
# Eval
# ---------------------------------------------------------------------------


@main.command("eval")
@click.argument("source")
@_with_common_options
@click.option(
    "--format", "fmt",
    type=click.Choice(["text", "csv", "json"]),
    default="text",
    help="Output format.",
)
def eval_cmd(
    source: str,
    config_path: str | None,
    log_dir: str | None,
    max_depth: int | None,
    lenient: bool,
    fmt: str,
) -> None:
    """Evaluate the grid in SOURCE (use - for stdin) and print it."""
    from gridcalc.render import display_rows, render_text, to_frame

    grid, graph, _ = _evaluate(source, config_path, log_dir, max_depth, lenient)
    rows = display_rows(grid, graph)

    if fmt == "csv":
        click.echo(to_frame(rows).write_csv(), nl=False)
    elif fmt == "json":
        click.echo(json.dumps({"rows": rows, "run_id": graph.run_id}, indent=2))
    else:
        click.echo(render_text(rows), nl=False)

    for cell_id, message in graph.get_internal_errors().items():
        click.echo(f"{cell_id}: {message}", err=True)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


@main.command("errors")
@click.argument("source")
@_with_common_options
def errors_cmd(
    source: str,
    config_path: str | None,
    log_dir: str | None,
    max_depth: int | None,
    lenient: bool,
) -> None:
    """List formula cells in SOURCE that evaluate to an error code.

    String literals that only look like error codes are not listed.
    Exits with status 1 if any are found.
    """
    _, graph, _ = _evaluate(source, config_path, log_dir, max_depth, lenient)
    codes = graph.get_error_codes()

    found = 0
    for cell_id in graph.results():
        if cell_id in codes:
            click.echo(f"{cell_id}\t{codes[cell_id]}")
            found += 1
    for cell_id, message in graph.get_internal_errors().items():
        click.echo(f"{cell_id}\tINTERNAL\t{message}")
        found += 1

    if found:
        raise SystemExit(1)
    click.echo("No errors.")
