from __future__ import annotations

import os
from pathlib import Path

import pytest


@pytest.fixture
def fake_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    home.mkdir(parents=True)
    state = home / ".local" / "state" / "copytrade"
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("COPYTRADE_RUNTIME_SOCKET_PATH", str(state / "copytrade.sock"))
    monkeypatch.setenv("COPYTRADE_RUNTIME_PID_FILE", str(state / "copytrade-daemon.pid"))
    monkeypatch.setenv("COPYTRADE_LOGGING_AUDIT_DB", str(state / "audit.db"))
    monkeypatch.setenv("COPYTRADE_LOGGING_LOG_FILE", str(state / "copytrade.log"))
    return home


@pytest.fixture(autouse=True)
def clear_copytrade_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ.keys()):
        if key.startswith("COPYTRADE_"):
            monkeypatch.delenv(key, raising=False)
