from __future__ import annotations

from typer.testing import CliRunner

from copytrade_cli.main import app


def test_root_help() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["-h"])
    assert result.exit_code == 0
    assert "copytrade command-line interface" in result.stdout
    assert "Examples" in result.stdout
    assert "simulate" in result.stdout


def test_unknown_command_suggests_close_match() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["folow"])
    assert result.exit_code != 0
    combined = result.output
    assert "Did you mean" in combined
    assert "follow" in combined
