"""Portfolio commands."""

from __future__ import annotations

import typer

from copytrade_cli._common import build_typer, daemon_request, get_state, handle_error, print_output, run_async
from copytrade_daemon.exceptions import CopyTradeError

app = build_typer("Portfolio commands (`show`, `list`, `refresh`).")


@app.command("show", help="Show one user's holdings, balances, and recent trade history.")
def show(
    ctx: typer.Context,
    user_id: str = typer.Option(..., "--user", help="User id."),
    history: int = typer.Option(20, "--history", min=0, help="Number of most recent trades to include."),
    summary_only: bool = typer.Option(False, "--summary", help="Print only the summary figures."),
) -> None:
    state = get_state(ctx)
    try:
        data = run_async(daemon_request(state, "portfolio.get", {"user_id": user_id, "history_limit": history}))
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)
        return

    if summary_only:
        print_output(data.get("summary", {}), json_output=state.json_output, title="Portfolio")
        return
    if state.json_output:
        print_output(data, json_output=True)
        return
    print_output(data.get("summary", {}), json_output=False, title="Portfolio")
    portfolio = data.get("portfolio", {})
    print_output(portfolio.get("holdings", []), json_output=False, title="Holdings")
    print_output(portfolio.get("history", []), json_output=False, title="Trade History")


@app.command("list", help="List summaries for every live portfolio.")
def list_portfolios(ctx: typer.Context) -> None:
    state = get_state(ctx)
    try:
        data = run_async(daemon_request(state, "portfolio.list", {}))
        print_output(data.get("portfolios", []), json_output=state.json_output, title="Portfolios")
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)


@app.command("refresh", help="Re-mark holdings at current quotes.")
def refresh(
    ctx: typer.Context,
    user_id: str = typer.Option(..., "--user", help="User id."),
) -> None:
    state = get_state(ctx)
    try:
        data = run_async(daemon_request(state, "portfolio.refresh", {"user_id": user_id}))
        print_output(data.get("portfolio", data), json_output=state.json_output, title="Portfolio")
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)
