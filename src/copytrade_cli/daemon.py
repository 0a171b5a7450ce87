"""Daemon lifecycle commands."""

from __future__ import annotations

import time

import typer

from copytrade_cli._common import (
    CLIState,
    build_typer,
    daemon_request,
    get_state,
    handle_error,
    is_pid_running,
    print_output,
    read_pid_file,
    run_async,
    start_daemon_process,
    terminate_pid,
)
from copytrade_daemon.config import AppConfig
from copytrade_daemon.exceptions import CopyTradeError

app = build_typer("Daemon lifecycle commands (`start`, `stop`, `status`, `restart`).")


def _start_env(provider: str | None, speedup: float | None, no_feed: bool, seed: int | None) -> dict[str, str]:
    env: dict[str, str] = {}
    if provider:
        env["COPYTRADE_MARKET_DATA_PROVIDER"] = provider
    if speedup is not None:
        if speedup <= 0:
            raise typer.BadParameter("--speedup must be > 0")
        env["COPYTRADE_FEED_SPEEDUP"] = str(float(speedup))
    if no_feed:
        env["COPYTRADE_FEED_ENABLED"] = "false"
    if seed is not None:
        env["COPYTRADE_FEED_SEED"] = str(seed)
    return env


@app.command("start", help="Start copytrade-daemon and wait for socket readiness.")
def start(
    ctx: typer.Context,
    provider: str | None = typer.Option(None, "--provider", help="Quote provider: synthetic or alphavantage."),
    speedup: float | None = typer.Option(None, "--speedup", help="Mock feed time compression factor."),
    no_feed: bool = typer.Option(False, "--no-feed", help="Disable the mock trader feed."),
    seed: int | None = typer.Option(None, "--seed", help="Seed the mock feed for reproducible runs."),
) -> None:
    state = get_state(ctx)
    env = _start_env(provider, speedup, no_feed, seed)

    code = start_daemon_process(state.config_path, state.config, extra_env=env or None)
    if code != 0:
        typer.echo(f"Failed to start daemon. Check {state.config.logging.log_file} for startup errors.", err=True)
        raise typer.Exit(code=1)

    print_output({"ok": True, "socket": str(state.config.runtime.socket_path)}, json_output=state.json_output)


@app.command("stop", help="Request graceful daemon shutdown.")
def stop(ctx: typer.Context) -> None:
    state = get_state(ctx)
    try:
        data = run_async(daemon_request(state, "daemon.stop", {}))
        print_output(data, json_output=state.json_output)
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)


@app.command("status", help="Show daemon uptime, feed state, portfolios, and quote cache size.")
def status(ctx: typer.Context) -> None:
    state = get_state(ctx)
    try:
        data = run_async(daemon_request(state, "daemon.status", {}))
        print_output(data, json_output=state.json_output)
    except CopyTradeError as exc:
        handle_error(exc, json_output=state.json_output)


@app.command("restart", help="Stop then start the daemon.")
def restart(
    ctx: typer.Context,
    provider: str | None = typer.Option(None, "--provider", help="Quote provider: synthetic or alphavantage."),
    speedup: float | None = typer.Option(None, "--speedup", help="Mock feed time compression factor."),
    no_feed: bool = typer.Option(False, "--no-feed", help="Disable the mock trader feed."),
    seed: int | None = typer.Option(None, "--seed", help="Seed the mock feed for reproducible runs."),
) -> None:
    state = get_state(ctx)
    env = _start_env(provider, speedup, no_feed, seed)
    try:
        run_async(daemon_request(state, "daemon.stop", {}))
    except Exception:
        pass

    if not _wait_for_daemon_shutdown(state.config, timeout_seconds=10):
        pid = read_pid_file(state.config.runtime.pid_file)
        if pid is not None and is_pid_running(pid):
            terminate_pid(pid)
        if not _wait_for_daemon_shutdown(state.config, timeout_seconds=5):
            typer.echo("Timed out waiting for daemon shutdown. Check for stale copytrade-daemon processes and retry.", err=True)
            raise typer.Exit(code=1)

    code = start_daemon_process(state.config_path, state.config, extra_env=env or None)
    if code != 0:
        typer.echo(f"Failed to restart daemon. Check {state.config.logging.log_file} for details.", err=True)
        raise typer.Exit(code=1)
    print_output({"ok": True, "restarted": True}, json_output=state.json_output)


def _wait_for_daemon_shutdown(cfg: AppConfig, *, timeout_seconds: float) -> bool:
    deadline = time.time() + timeout_seconds
    while time.time() < deadline:
        socket_exists = cfg.runtime.socket_path.exists()
        pid = read_pid_file(cfg.runtime.pid_file)
        pid_running = pid is not None and is_pid_running(pid)

        daemon_responding = False
        if socket_exists:
            try:
                run_async(daemon_request(CLIState(cfg, json_output=True), "daemon.status", {}))
                daemon_responding = True
            except Exception:
                daemon_responding = False

        if socket_exists and not daemon_responding and not pid_running:
            cfg.runtime.socket_path.unlink(missing_ok=True)
            socket_exists = False

        if not socket_exists and not daemon_responding and not pid_running:
            return True
        time.sleep(0.1)
    return False
