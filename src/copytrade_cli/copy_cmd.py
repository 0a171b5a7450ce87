"""Copy settings commands."""

from __future__ import annotations

from enum import Enum

import typer

from copytrade_cli._common import build_typer, daemon_request, get_state, handle_error, print_output, run_async
from copytrade_daemon.exceptions import CopyTradeError

app = build_typer("Copy-trading settings (`set`, `show`, `stop`).")


class SizeType(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


@app.command("set", help="Create or replace copy settings for a trader (also follows the trader).")
def set_settings(
    ctx: typer.Context,
    trader_id: int = typer.Argument(..., help="Trader id."),
    user_id: str = typer.Option(..., "--user", help="User id."),
    size_type: SizeType = typer.Option(SizeType.FIXED, "--size-type", case_sensitive=False, help="fixed dollars or percentage of cash."),
    size: float = typer.Option(1000.0, "--size", help="Dollar amount, or percent of cash with --size-type percentage."),
    max_size: float = typer.Option(10_000.0, "--max-size", help="Dollar cap on a single copied trade."),
    disabled: bool = typer.Option(False, "--disabled", help="Store the settings without copying."),
    stop_loss: float | None = typer.Option(None, "--stop-loss", help="Stop-loss percent (stored only)."),
    take_profit: float | None = typer.Option(None, "--take-profit", help="Take-profit percent (stored only)."),
    max_daily_loss: float | None = typer.Option(None, "--max-daily-loss", help="Daily loss cap in dollars (stored only)."),
    max_drawdown: float | None = typer.Option(None, "--max-drawdown", help="Drawdown cap percent (stored only)."),
) -> None:
    state = get_state(ctx)
    settings: dict[str, object] = {
        "enabled": not disabled,
        "position_size_type": size_type.value,
        "position_size": size,
        "max_position_size": max_size,
        "stop_loss_percent": stop_loss,
        "take_profit_percent": take_profit,
        "max_daily_loss": max_daily_loss,
        "max_drawdown_percent": max_drawdown,
    }
    params = {"user_id": user_id, "trader_id": trader_id, "settings": settings}

    try:
        data = run_async(daemon_request(state, "copy.settings.set", params))
        print_output(data, json_output=state.json_output)
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)


@app.command("show", help="Show copy settings for one trader, or all traders when omitted.")
def show(
    ctx: typer.Context,
    trader_id: int | None = typer.Argument(None, help="Optional trader id."),
    user_id: str = typer.Option(..., "--user", help="User id."),
) -> None:
    state = get_state(ctx)
    params: dict[str, object] = {"user_id": user_id}
    if trader_id is not None:
        params["trader_id"] = trader_id

    try:
        data = run_async(daemon_request(state, "copy.settings.get", params))
        print_output(data, json_output=state.json_output, title="Copy Settings")
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)


@app.command("stop", help="Disable copying a trader while keeping the follow.")
def stop(
    ctx: typer.Context,
    trader_id: int = typer.Argument(..., help="Trader id."),
    user_id: str = typer.Option(..., "--user", help="User id."),
) -> None:
    state = get_state(ctx)
    try:
        data = run_async(daemon_request(state, "copy.stop", {"user_id": user_id, "trader_id": trader_id}))
        print_output(data, json_output=state.json_output)
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)
