"""Tests for the gridcalc command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from gridcalc import __version__
from gridcalc.cli import main

from conftest import SAMPLE_GRID, SAMPLE_OUTPUT


class TestEval:
    def test_text_output(self, sample_file: Path):
        result = CliRunner().invoke(main, ["eval", str(sample_file)])
        assert result.exit_code == 0, result.output
        assert result.output == SAMPLE_OUTPUT

    def test_stdin(self):
        result = CliRunner().invoke(main, ["eval", "-"], input=SAMPLE_GRID)
        assert result.exit_code == 0, result.output
        assert result.output == SAMPLE_OUTPUT

    def test_csv_output(self, sample_file: Path):
        result = CliRunner().invoke(main, ["eval", str(sample_file), "--format", "csv"])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0] == "A,B,C,D"
        assert lines[2] == "4,-16,-4,Spread"

    def test_json_output(self, sample_file: Path):
        result = CliRunner().invoke(main, ["eval", str(sample_file), "--format", "json"])
        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["rows"][2] == ["Test", "1", "5", "Sheet"]

    def test_missing_file(self, tmp_path: Path):
        result = CliRunner().invoke(main, ["eval", str(tmp_path / "nope.tsv")])
        assert result.exit_code == 1
        assert "No such file" in result.output

    def test_bad_header(self, tmp_path: Path):
        path = tmp_path / "bad.tsv"
        path.write_text("rows cols\n")
        result = CliRunner().invoke(main, ["eval", str(path)])
        assert result.exit_code == 1
        assert "Incorrect table header" in result.output

    def test_lenient_flag(self):
        result = CliRunner().invoke(main, ["eval", "-", "--lenient"], input="1 1\n=1+\n")
        assert result.output == "1\t\n"
        result = CliRunner().invoke(main, ["eval", "-"], input="1 1\n=1+\n")
        assert result.output == "#E_INCOMPLETE\t\n"

    def test_max_depth_option(self):
        grid = "3 1\n=A2\n=A3\n7\n"
        result = CliRunner().invoke(main, ["eval", "-", "--max-depth", "1"], input=grid)
        assert result.output.splitlines()[0] == "#E_DEPTH\t"

    def test_max_depth_above_recursion_limit(self, tmp_path: Path):
        path = tmp_path / "chain.tsv"
        path.write_text("400 1\n" + "".join(f"=A{r + 2}\n" for r in range(399)) + "1\n")
        result = CliRunner().invoke(main, ["eval", str(path), "--max-depth", "1000"])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0] == "#E_DEPTH\t"
        assert lines[398] == "1\t"

    def test_malformed_config(self, tmp_path: Path):
        path = tmp_path / "gridcalc.yaml"
        path.write_text("max_depth: [\n")
        result = CliRunner().invoke(main, ["eval", "-", "--config", str(path)], input="1 1\n1\n")
        assert result.exit_code == 1
        assert "Invalid YAML" in result.output

    def test_non_utf8_grid(self, tmp_path: Path):
        path = tmp_path / "latin.tsv"
        path.write_bytes(b"1 1\n'\xff\xfe\n")
        result = CliRunner().invoke(main, ["eval", str(path)])
        assert result.exit_code == 1
        assert "not UTF-8 text" in result.output

    def test_config_file(self, tmp_path: Path):
        (tmp_path / "gridcalc.yaml").write_text("strict_formulas: false\n")
        result = CliRunner().invoke(
            main, ["eval", "-", "--config", str(tmp_path)], input="1 1\n=4*\n",
        )
        assert result.output == "4\t\n"

    def test_log_dir(self, tmp_path: Path, sample_file: Path):
        log_dir = tmp_path / "logs"
        result = CliRunner().invoke(main, ["eval", str(sample_file), "--log-dir", str(log_dir)])
        assert result.exit_code == 0, result.output
        lines = (log_dir / "events.ndjson").read_text().splitlines()
        types = [json.loads(line)["event_type"] for line in lines]
        assert types == ["run_started", "run_completed"]
        assert len(list((log_dir / "runs").iterdir())) == 1


class TestErrors:
    def test_no_errors(self, sample_file: Path):
        result = CliRunner().invoke(main, ["errors", str(sample_file)])
        assert result.exit_code == 0, result.output
        assert "No errors." in result.output

    def test_lists_error_cells(self):
        grid = "1 4\n=B1\t=A1\t=5/0\t=1\n"
        result = CliRunner().invoke(main, ["errors", "-"], input=grid)
        assert result.exit_code == 1
        assert result.output.splitlines() == [
            "A1\t#E_CROSS_REF",
            "B1\t#E_CROSS_REF",
            "C1\t#E_INFINITE",
        ]

    def test_passed_through_errors(self):
        grid = "1 3\n=5/0\t=A1\t=B1\n"
        result = CliRunner().invoke(main, ["errors", "-"], input=grid)
        assert result.exit_code == 1
        assert result.output.splitlines() == [
            "A1\t#E_INFINITE",
            "B1\t#E_INFINITE",
            "C1\t#E_INFINITE",
        ]

    def test_literal_that_looks_like_a_code(self):
        grid = "1 2\n'#E_INFINITE\t=A1\n"
        result = CliRunner().invoke(main, ["errors", "-"], input=grid)
        assert result.exit_code == 0, result.output
        assert "No errors." in result.output


def test_version():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
