"""Offline copy-trading simulation command."""

from __future__ import annotations

import typer

from copytrade_cli._common import get_state, handle_error, print_output, run_async
from copytrade_daemon.exceptions import CopyTradeError
from copytrade_daemon.models.copy import CopySettings, PositionSizeType
from copytrade_daemon.simulation import default_simulation_settings, simulate_copy_portfolio


def simulate(
    ctx: typer.Context,
    trader_id: int = typer.Argument(..., help="Trader id to copy."),
    days: int = typer.Option(30, "--days", min=1, help="Calendar days to simulate; weekends are skipped."),
    trades_per_day: int = typer.Option(5, "--trades-per-day", min=1, help="Upper bound on trades per trading day."),
    balance: float = typer.Option(100_000.0, "--balance", help="Starting cash balance."),
    size_type: PositionSizeType = typer.Option(PositionSizeType.PERCENTAGE, "--size-type", case_sensitive=False),
    size: float | None = typer.Option(None, "--size", help="Override position size (dollars or percent)."),
    max_size: float | None = typer.Option(None, "--max-size", help="Override the per-trade dollar cap."),
    seed: int | None = typer.Option(None, "--seed", help="Seed for a reproducible run."),
) -> None:
    """Runs entirely in-process; no daemon is required."""
    state = get_state(ctx)
    settings: CopySettings = default_simulation_settings().model_copy(update={"position_size_type": size_type})
    if size is None and size_type == PositionSizeType.FIXED:
        size = CopySettings().position_size
    if size is not None:
        settings = settings.model_copy(update={"position_size": size})
    if max_size is not None:
        settings = settings.model_copy(update={"max_position_size": max_size})

    try:
        report = run_async(
            simulate_copy_portfolio(
                trader_id,
                days=days,
                trades_per_day=trades_per_day,
                initial_balance=balance,
                settings=settings,
                seed=seed,
            )
        )
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)
        return

    data = report.model_dump(mode="json")
    if state.json_output:
        print_output(data, json_output=True)
        return
    holdings = data.pop("holdings")
    print_output(data, json_output=False, title="Simulation")
    print_output(holdings, json_output=False, title="Holdings")
