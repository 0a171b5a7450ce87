"""Market data commands."""

from __future__ import annotations

import typer

from copytrade_cli._common import daemon_request, get_state, handle_error, print_output, run_async
from copytrade_daemon.exceptions import CopyTradeError


def quote(
    ctx: typer.Context,
    symbols: list[str] = typer.Argument(
        ...,
        metavar="SYMBOL...",
        help="One or more symbols. Example: AAPL MSFT TSLA",
    ),
) -> None:
    state = get_state(ctx)
    try:
        data = run_async(daemon_request(state, "quote.get", {"symbols": [s.upper() for s in symbols]}))
        print_output(data.get("quotes", []), json_output=state.json_output, title="Quotes")
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)
