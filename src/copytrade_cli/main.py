"""Root Typer app and command registration."""

from __future__ import annotations

from pathlib import Path

import typer

from copytrade_cli import audit, copy_cmd, daemon, events, market, portfolio, session, simulate, trade, traders
from copytrade_cli._common import CLIState, build_typer, load_config, resolve_json_mode
from copytrade_cli.schema_cmd import schema

app = build_typer(
    """copytrade command-line interface for simulated copy trading.

    Examples:
      copytrade daemon start
      copytrade session start --user alice --balance 10000
      copytrade follow 1 --user alice
      copytrade copy set 1 --user alice --size-type percentage --size 10
      copytrade portfolio show --user alice
      copytrade simulate 3 --days 30
    """
)

app.add_typer(daemon.app, name="daemon")
app.add_typer(session.app, name="session")
app.add_typer(portfolio.app, name="portfolio")
app.add_typer(traders.app, name="traders")
app.add_typer(copy_cmd.app, name="copy")
app.add_typer(trade.app, name="trade")
app.add_typer(audit.app, name="audit")

app.command("follow", help="Follow a trader.")(traders.follow)
app.command("unfollow", help="Unfollow a trader and disable its copy settings.")(traders.unfollow)
app.command("quote", help="Quote one or more symbols through the daemon quote cache.")(market.quote)
app.command("events", help="Stream daemon events as JSONL.")(events.events)
app.command("schema", help="Show JSON schemas for daemon commands.")(schema)
app.command("simulate", help="Replay a trader's strategy against a fresh portfolio, offline.")(simulate.simulate)


@app.callback()
def root(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit machine-readable JSON only.",
    ),
    config: str | None = typer.Option(
        None,
        "--config",
        help="Path to config.json (default: ~/.config/copytrade/config.json).",
    ),
) -> None:
    config_path = None if config is None else Path(config)
    cfg = load_config(config_path)
    ctx.obj = CLIState(config=cfg, json_output=resolve_json_mode(json_output, cfg), config_path=config_path)


def run() -> None:
    app()
