"""Audit query commands."""

from __future__ import annotations

from enum import Enum

import typer

from copytrade_cli._common import build_typer, daemon_request, get_state, handle_error, print_output, run_async
from copytrade_daemon.exceptions import CopyTradeError

app = build_typer("Audit journal queries (`commands`, `fills`, `rejections`).")


class AuditSource(str, Enum):
    CLI = "cli"
    SDK = "sdk"


class FillSource(str, Enum):
    COPY = "copy"
    MANUAL = "manual"


class RejectionCode(str, Enum):
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    INSUFFICIENT_SHARES = "INSUFFICIENT_SHARES"
    INVALID_TRADE = "INVALID_TRADE"


@app.command("commands", help="Query command invocation audit records.")
def commands(
    ctx: typer.Context,
    source: AuditSource | None = typer.Option(None, "--source", case_sensitive=False),
    since: str | None = typer.Option(None, "--since", help="YYYY-MM-DD"),
    request_id: str | None = typer.Option(None, "--request-id"),
    limit: int | None = typer.Option(None, "--limit", min=1),
) -> None:
    state = get_state(ctx)
    params: dict[str, object] = {}
    if source:
        params["source"] = source.value
    if since:
        params["since"] = since
    if request_id:
        params["request_id"] = request_id
    if limit:
        params["limit"] = limit

    try:
        data = run_async(daemon_request(state, "audit.commands", params))
        print_output(data.get("commands", []), json_output=state.json_output, title="Audit Commands")
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)


@app.command("fills", help="Query executed copy and manual fills.")
def fills(
    ctx: typer.Context,
    user_id: str | None = typer.Option(None, "--user"),
    symbol: str | None = typer.Option(None, "--symbol"),
    source: FillSource | None = typer.Option(None, "--source", case_sensitive=False),
    since: str | None = typer.Option(None, "--since", help="YYYY-MM-DD"),
    limit: int | None = typer.Option(None, "--limit", min=1),
) -> None:
    state = get_state(ctx)
    params: dict[str, object] = {}
    if user_id:
        params["user_id"] = user_id
    if symbol:
        params["symbol"] = symbol.upper()
    if source:
        params["source"] = source.value
    if since:
        params["since"] = since
    if limit:
        params["limit"] = limit

    try:
        data = run_async(daemon_request(state, "audit.fills", params))
        print_output(data.get("fills", []), json_output=state.json_output, title="Audit Fills")
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)


@app.command("rejections", help="Query trades rejected for insufficient funds, shares, or bad input.")
def rejections(
    ctx: typer.Context,
    user_id: str | None = typer.Option(None, "--user"),
    code: RejectionCode | None = typer.Option(None, "--code", case_sensitive=False),
    since: str | None = typer.Option(None, "--since", help="YYYY-MM-DD"),
    limit: int | None = typer.Option(None, "--limit", min=1),
) -> None:
    state = get_state(ctx)
    params: dict[str, object] = {}
    if user_id:
        params["user_id"] = user_id
    if code:
        params["code"] = code.value
    if since:
        params["since"] = since
    if limit:
        params["limit"] = limit

    try:
        data = run_async(daemon_request(state, "audit.rejections", params))
        print_output(data.get("rejections", []), json_output=state.json_output, title="Audit Rejections")
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)
