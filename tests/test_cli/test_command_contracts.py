from __future__ import annotations

import json
import re
from typing import Any

import pytest
from typer.testing import CliRunner

from copytrade_cli import audit, copy_cmd, daemon, market, portfolio, schema_cmd, session, trade, traders
from copytrade_cli.main import app
from copytrade_daemon.exceptions import CopyTradeError, ErrorCode

_ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")


def _strip_ansi(text: str) -> str:
    return _ANSI_ESCAPE_RE.sub("", text)


def _extract_commands(help_text: str) -> set[str]:
    help_text = _strip_ansi(help_text)
    commands: set[str] = set()
    in_commands = False
    for line in help_text.splitlines():
        stripped = line.strip()
        if stripped.startswith("╭─ Commands"):
            in_commands = True
            continue
        if in_commands and stripped.startswith("╰"):
            break
        match = re.match(r"^\s*[│|]\s+([a-z][a-z0-9_-]*)\s{2,}.*[│|]\s*$", line)
        if match:
            commands.add(match.group(1))
    return commands


@pytest.fixture(autouse=True)
def _use_fake_home(fake_home: object) -> None:
    _ = fake_home


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def rpc(monkeypatch: pytest.MonkeyPatch) -> list[tuple[str, dict[str, Any]]]:
    calls: list[tuple[str, dict[str, Any]]] = []

    async def fake_daemon_request(_: Any, command: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        payload = params or {}
        calls.append((command, payload))
        responses: dict[str, dict[str, Any]] = {
            "daemon.status": {"uptime_seconds": 1.0, "socket": "/tmp/copytrade.sock"},
            "daemon.stop": {"stopping": True},
            "session.start": {"user_id": "alice", "portfolio": {"cash_balance": 100000.0}},
            "session.end": {"user_id": "alice", "ended": True},
            "portfolio.get": {"portfolio": {"holdings": [], "history": []}, "summary": {"cash_balance": 100000.0}},
            "portfolio.list": {"portfolios": []},
            "portfolio.refresh": {"portfolio": {"holdings": []}},
            "traders.list": {"traders": [{"id": 1, "name": "Buffett_Bot"}]},
            "trader.get": {"trader": {"id": 1}, "recent_trades": []},
            "trader.follow": {"user_id": "alice", "trader_id": 1, "following": True, "changed": True},
            "trader.unfollow": {"user_id": "alice", "trader_id": 1, "following": False, "changed": True},
            "copy.settings.set": {"user_id": "alice", "trader_id": 1, "settings": {}, "warnings": []},
            "copy.settings.get": {"settings": {}},
            "copy.stop": {"user_id": "alice", "trader_id": 1, "stopped": True},
            "trade.manual": {"trade": {"id": "t1"}, "summary": {}},
            "trade.ingest": {"trade": {"id": "t2"}, "results": []},
            "quote.get": {"quotes": [{"symbol": "AAPL", "price": 190.0}]},
            "audit.commands": {"commands": []},
            "audit.fills": {"fills": []},
            "audit.rejections": {"rejections": []},
            "schema.get": {"schema_version": "v1", "commands": {}},
        }
        return responses.get(command, {"ok": True})

    for mod in (audit, copy_cmd, daemon, market, portfolio, schema_cmd, session, trade, traders):
        monkeypatch.setattr(mod, "daemon_request", fake_daemon_request)

    return calls


def test_root_command_surface_contract(runner: CliRunner) -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0

    commands = _extract_commands(result.stdout)
    assert commands == {
        "daemon",
        "session",
        "portfolio",
        "traders",
        "copy",
        "trade",
        "audit",
        "follow",
        "unfollow",
        "quote",
        "events",
        "schema",
        "simulate",
    }


@pytest.mark.parametrize(
    ("args", "expected"),
    [
        (["daemon", "--help"], {"start", "stop", "status", "restart"}),
        (["copy", "--help"], {"set", "show", "stop"}),
        (["trade", "--help"], {"buy", "sell", "ingest"}),
        (["audit", "--help"], {"commands", "fills", "rejections"}),
    ],
)
def test_subcommand_surface_contract(
    runner: CliRunner,
    args: list[str],
    expected: set[str],
) -> None:
    result = runner.invoke(app, args)
    assert result.exit_code == 0
    assert _extract_commands(result.stdout) == expected


@pytest.mark.parametrize(
    ("args", "expected_rpc"),
    [
        (["quote", "AAPL"], "quote.get"),
        (["session", "start", "--user", "alice", "--balance", "5000"], "session.start"),
        (["session", "end", "--user", "alice"], "session.end"),
        (["portfolio", "show", "--user", "alice"], "portfolio.get"),
        (["portfolio", "list"], "portfolio.list"),
        (["portfolio", "refresh", "--user", "alice"], "portfolio.refresh"),
        (["traders", "list"], "traders.list"),
        (["traders", "show", "1"], "trader.get"),
        (["follow", "1", "--user", "alice"], "trader.follow"),
        (["unfollow", "1", "--user", "alice"], "trader.unfollow"),
        (["copy", "set", "1", "--user", "alice", "--size-type", "percentage", "--size", "10"], "copy.settings.set"),
        (["copy", "show", "--user", "alice"], "copy.settings.get"),
        (["copy", "stop", "1", "--user", "alice"], "copy.stop"),
        (["trade", "buy", "AAPL", "1", "--user", "alice"], "trade.manual"),
        (["trade", "sell", "AAPL", "1", "--user", "alice", "--price", "190"], "trade.manual"),
        (["trade", "ingest", "--trader", "1", "--side", "buy", "--symbol", "ko", "--qty", "10", "--price", "60"], "trade.ingest"),
        (["audit", "commands"], "audit.commands"),
        (["audit", "fills", "--user", "alice"], "audit.fills"),
        (["audit", "rejections", "--code", "INSUFFICIENT_FUNDS"], "audit.rejections"),
        (["schema"], "schema.get"),
        (["daemon", "status"], "daemon.status"),
        (["daemon", "stop"], "daemon.stop"),
    ],
)
def test_commands_are_usable_and_mapped_to_expected_rpc(
    runner: CliRunner,
    rpc: list[tuple[str, dict[str, Any]]],
    args: list[str],
    expected_rpc: str,
) -> None:
    result = runner.invoke(app, args)
    assert result.exit_code == 0, result.stdout
    assert rpc, f"expected at least one RPC call for args={args}"
    assert rpc[-1][0] == expected_rpc


def test_copy_set_sends_full_settings(runner: CliRunner, rpc: list[tuple[str, dict[str, Any]]]) -> None:
    result = runner.invoke(app, ["copy", "set", "2", "--user", "alice", "--size", "1000", "--max-size", "500"])
    assert result.exit_code == 0

    command, params = rpc[-1]
    assert command == "copy.settings.set"
    assert params["trader_id"] == 2
    assert params["settings"]["enabled"] is True
    assert params["settings"]["position_size_type"] == "fixed"
    assert params["settings"]["max_position_size"] == 500.0


def test_trade_rejects_non_positive_quantity(runner: CliRunner, rpc: list[tuple[str, dict[str, Any]]]) -> None:
    result = runner.invoke(app, ["trade", "buy", "AAPL", "0", "--user", "alice"])
    assert result.exit_code != 0
    assert rpc == []


def test_daemon_error_maps_to_exit_code(monkeypatch: pytest.MonkeyPatch, runner: CliRunner) -> None:
    async def failing_request(_: Any, command: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        _ = (command, params)
        raise CopyTradeError(ErrorCode.UNKNOWN_USER, "unknown user 'ghost'")

    monkeypatch.setattr(portfolio, "daemon_request", failing_request)

    result = runner.invoke(app, ["portfolio", "show", "--user", "ghost"])
    assert result.exit_code == 4
    payload = json.loads(result.stdout.strip().splitlines()[-1])
    assert payload["error"]["code"] == "UNKNOWN_USER"


def test_daemon_start_uses_start_helper(monkeypatch: pytest.MonkeyPatch, runner: CliRunner) -> None:
    captured: dict[str, Any] = {}

    def fake_start(config_path: Any, cfg: Any, *, extra_env: dict[str, str] | None = None) -> int:
        captured["config_path"] = config_path
        captured["extra_env"] = extra_env
        return 0

    monkeypatch.setattr(daemon, "start_daemon_process", fake_start)
    result = runner.invoke(app, ["daemon", "start", "--speedup", "60", "--no-feed", "--seed", "7"])
    assert result.exit_code == 0
    assert captured["config_path"] is None
    assert captured["extra_env"] == {
        "COPYTRADE_FEED_SPEEDUP": "60.0",
        "COPYTRADE_FEED_ENABLED": "false",
        "COPYTRADE_FEED_SEED": "7",
    }


def test_daemon_restart_uses_stop_and_start(monkeypatch: pytest.MonkeyPatch, runner: CliRunner) -> None:
    calls: list[str] = []

    async def fake_daemon_request(_: Any, command: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        _ = params
        calls.append(command)
        return {"ok": True}

    def fake_start(_: Any, __: Any, *, extra_env: dict[str, str] | None = None) -> int:
        calls.append(f"start:{extra_env}")
        return 0

    monkeypatch.setattr(daemon, "daemon_request", fake_daemon_request)
    monkeypatch.setattr(daemon, "start_daemon_process", fake_start)

    result = runner.invoke(app, ["daemon", "restart", "--provider", "alphavantage"])
    assert result.exit_code == 0
    assert calls[0] == "daemon.stop"
    assert calls[1] == "start:{'COPYTRADE_MARKET_DATA_PROVIDER': 'alphavantage'}"


def test_simulate_runs_offline(runner: CliRunner) -> None:
    result = runner.invoke(app, ["simulate", "1", "--days", "7", "--seed", "3"])
    assert result.exit_code == 0, result.stdout
    report = json.loads(result.stdout.strip().splitlines()[-1])
    assert report["trader_id"] == 1
    assert report["days"] == 7


def test_simulate_unknown_trader_exits_with_error(runner: CliRunner) -> None:
    result = runner.invoke(app, ["simulate", "99"])
    assert result.exit_code == 4
