"""Trader discovery and follow commands."""

from __future__ import annotations

import typer

from copytrade_cli._common import build_typer, daemon_request, get_state, handle_error, print_output, run_async
from copytrade_daemon.exceptions import CopyTradeError

app = build_typer("Trader discovery commands (`list`, `show`).")

_LIST_COLUMNS = ("id", "name", "strategy", "risk_level", "win_rate", "return_30d", "followers", "following")


@app.command("list", help="List the trader catalog, flagging traders a user follows.")
def list_traders(
    ctx: typer.Context,
    user_id: str | None = typer.Option(None, "--user", help="Mark traders followed by this user."),
) -> None:
    state = get_state(ctx)
    params: dict[str, object] = {}
    if user_id:
        params["user_id"] = user_id

    try:
        data = run_async(daemon_request(state, "traders.list", params))
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)
        return

    traders = data.get("traders", [])
    if not state.json_output:
        traders = [{key: t[key] for key in _LIST_COLUMNS if key in t} for t in traders]
    print_output(traders, json_output=state.json_output, title="Traders")


@app.command("show", help="Show one trader's profile and most recent trades.")
def show(
    ctx: typer.Context,
    trader_id: int = typer.Argument(..., help="Trader id."),
    limit: int = typer.Option(5, "--limit", min=1, help="Number of recent trades to include."),
) -> None:
    state = get_state(ctx)
    try:
        data = run_async(daemon_request(state, "trader.get", {"trader_id": trader_id, "limit": limit}))
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)
        return

    if state.json_output:
        print_output(data, json_output=True)
        return
    print_output(data.get("trader", {}), json_output=False, title="Trader")
    print_output(data.get("recent_trades", []), json_output=False, title="Recent Trades")


def follow(
    ctx: typer.Context,
    trader_id: int = typer.Argument(..., help="Trader id."),
    user_id: str = typer.Option(..., "--user", help="User id."),
) -> None:
    state = get_state(ctx)
    try:
        data = run_async(daemon_request(state, "trader.follow", {"user_id": user_id, "trader_id": trader_id}))
        print_output(data, json_output=state.json_output)
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)


def unfollow(
    ctx: typer.Context,
    trader_id: int = typer.Argument(..., help="Trader id."),
    user_id: str = typer.Option(..., "--user", help="User id."),
) -> None:
    state = get_state(ctx)
    try:
        data = run_async(daemon_request(state, "trader.unfollow", {"user_id": user_id, "trader_id": trader_id}))
        print_output(data, json_output=state.json_output)
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)
