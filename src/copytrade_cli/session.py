"""Session commands: create and drop user portfolios."""

from __future__ import annotations

import typer

from copytrade_cli._common import build_typer, daemon_request, get_state, handle_error, print_output, run_async
from copytrade_daemon.exceptions import CopyTradeError

app = build_typer("Session commands (`start`, `end`).")


@app.command("start", help="Create a portfolio for a user; reuses the live one if the id exists.")
def start(
    ctx: typer.Context,
    user_id: str | None = typer.Option(None, "--user", help="User id. Generated when omitted."),
    balance: float | None = typer.Option(None, "--balance", help="Initial cash balance."),
) -> None:
    state = get_state(ctx)
    params: dict[str, object] = {}
    if user_id:
        params["user_id"] = user_id
    if balance is not None:
        params["initial_balance"] = balance

    try:
        data = run_async(daemon_request(state, "session.start", params))
        print_output(data, json_output=state.json_output)
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)


@app.command("end", help="Discard a user's portfolio, follows, and copy settings.")
def end(
    ctx: typer.Context,
    user_id: str = typer.Option(..., "--user", help="User id."),
) -> None:
    state = get_state(ctx)
    try:
        data = run_async(daemon_request(state, "session.end", {"user_id": user_id}))
        print_output(data, json_output=state.json_output)
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)
