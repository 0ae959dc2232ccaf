from __future__ import annotations

from pathlib import Path

from product_importer.cli import EXIT_BLOCKED, EXIT_FATAL, EXIT_SUCCESS
from product_importer.cli import main as cli_main

"""Exit code contract: 0 success, 1 fatal, 2 blocked / failed job."""


def test_exit_code_values():
    assert (EXIT_SUCCESS, EXIT_FATAL, EXIT_BLOCKED) == (0, 1, 2)


def test_exit_code_success(write_config: Path, valid_csv: Path, capsys):
    assert cli_main(["import", str(valid_csv)]) == 0


def test_exit_code_fatal_on_broken_config(temp_workdir: Path, valid_csv: Path, capsys):
    (temp_workdir / "config" / "import.yml").write_text("unknown: 1\n", encoding="utf-8")
    assert cli_main(["import", str(valid_csv)]) == 1
    assert "ERROR config: config validation failed" in capsys.readouterr().out


def test_exit_code_blocked_on_validation_errors(write_config: Path, demo_csv: Path, capsys):
    assert cli_main(["import", str(demo_csv)]) == 2
