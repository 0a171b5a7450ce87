"""Command schema discovery for scripted clients."""

from __future__ import annotations

import typer

from copytrade_cli._common import daemon_request, get_state, handle_error, print_output, run_async
from copytrade_daemon.exceptions import CopyTradeError


def schema(
    ctx: typer.Context,
    command: str | None = typer.Argument(
        None,
        help="Optional daemon command name (example: copy.settings.set). Omit to list all schemas.",
    ),
) -> None:
    state = get_state(ctx)
    params: dict[str, object] = {}
    if command:
        params["command"] = command

    try:
        data = run_async(daemon_request(state, "schema.get", params))
        print_output(data, json_output=state.json_output)
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)
