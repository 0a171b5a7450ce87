"""Manual trade commands."""

from __future__ import annotations

import typer

from copytrade_cli._common import build_typer, daemon_request, get_state, handle_error, print_output, run_async
from copytrade_daemon.exceptions import CopyTradeError

app = build_typer("Manual trades against a user's portfolio (`buy`, `sell`).")


def _submit(ctx: typer.Context, side: str, symbol: str, qty: int, user_id: str, price: float | None) -> None:
    state = get_state(ctx)
    if qty <= 0:
        raise typer.BadParameter("quantity must be > 0")
    if price is not None and price <= 0:
        raise typer.BadParameter("--price must be > 0")

    params: dict[str, object] = {"user_id": user_id, "side": side, "symbol": symbol.upper(), "quantity": qty}
    if price is not None:
        params["price"] = price

    try:
        data = run_async(daemon_request(state, "trade.manual", params))
        print_output(data, json_output=state.json_output)
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)


@app.command("buy", help="Buy shares for a user's portfolio.")
def buy(
    ctx: typer.Context,
    symbol: str = typer.Argument(..., help="Ticker symbol."),
    qty: int = typer.Argument(..., help="Share quantity."),
    user_id: str = typer.Option(..., "--user", help="User id."),
    price: float | None = typer.Option(None, "--price", help="Reference price; defaults to the current quote."),
) -> None:
    _submit(ctx, "buy", symbol, qty, user_id, price)


@app.command("sell", help="Sell shares from a user's portfolio.")
def sell(
    ctx: typer.Context,
    symbol: str = typer.Argument(..., help="Ticker symbol."),
    qty: int = typer.Argument(..., help="Share quantity."),
    user_id: str = typer.Option(..., "--user", help="User id."),
    price: float | None = typer.Option(None, "--price", help="Reference price; defaults to the current quote."),
) -> None:
    _submit(ctx, "sell", symbol, qty, user_id, price)


@app.command("ingest", help="Inject an upstream trader trade and copy it into every portfolio.")
def ingest(
    ctx: typer.Context,
    trader_id: int = typer.Option(..., "--trader", help="Upstream trader id."),
    side: str = typer.Option(..., "--side", help="buy or sell."),
    symbol: str = typer.Option(..., "--symbol", help="Ticker symbol."),
    qty: int = typer.Option(..., "--qty", help="Trader's share quantity."),
    price: float = typer.Option(..., "--price", help="Trader's fill price."),
) -> None:
    state = get_state(ctx)
    trade = {"trader_id": trader_id, "side": side.lower(), "symbol": symbol.upper(), "quantity": qty, "price": price}
    try:
        data = run_async(daemon_request(state, "trade.ingest", {"trade": trade}))
        print_output(data, json_output=state.json_output)
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)
