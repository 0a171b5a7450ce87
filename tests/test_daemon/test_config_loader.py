from __future__ import annotations

import json
from pathlib import Path

import pytest

from copytrade_daemon import config as copytrade_config


def _set_runtime_env(monkeypatch, root: Path) -> None:
    monkeypatch.setenv("COPYTRADE_RUNTIME_SOCKET_PATH", str(root / "copytrade.sock"))
    monkeypatch.setenv("COPYTRADE_RUNTIME_PID_FILE", str(root / "copytrade-daemon.pid"))
    monkeypatch.setenv("COPYTRADE_LOGGING_AUDIT_DB", str(root / "audit.db"))
    monkeypatch.setenv("COPYTRADE_LOGGING_LOG_FILE", str(root / "copytrade.log"))


def test_load_config_reads_copytrade_section(tmp_path: Path, monkeypatch) -> None:
    _set_runtime_env(monkeypatch, tmp_path)

    config_json = tmp_path / "config.json"
    config_json.write_text(
        json.dumps(
            {
                "copytrade": {
                    "engine": {"initial_balance": 25000, "fill_price_source": "trade"},
                    "market_data": {"provider": "AlphaVantage", "quote_ttl_seconds": 30},
                    "feed": {"speedup": 60},
                }
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setattr(copytrade_config, "DEFAULT_COPYTRADE_CONFIG_JSON", config_json)

    cfg = copytrade_config.load_config()

    assert cfg.engine.initial_balance == 25000
    assert cfg.engine.fill_price_source == "trade"
    assert cfg.market_data.provider == "alphavantage"
    assert cfg.market_data.quote_ttl_seconds == 30
    assert cfg.feed.speedup == 60
    assert cfg.runtime.socket_path == tmp_path / "copytrade.sock"


def test_env_overrides_win_over_json(tmp_path: Path, monkeypatch) -> None:
    _set_runtime_env(monkeypatch, tmp_path)
    monkeypatch.setenv("COPYTRADE_MARKET_DATA_QUOTE_TTL_SECONDS", "5")
    monkeypatch.setenv("COPYTRADE_FEED_ENABLED", "false")
    monkeypatch.setenv("COPYTRADE_ENGINE_INITIAL_BALANCE", "2500.5")

    config_json = tmp_path / "config.json"
    config_json.write_text(json.dumps({"copytrade": {"market_data": {"quote_ttl_seconds": 90}}}), encoding="utf-8")
    monkeypatch.setattr(copytrade_config, "DEFAULT_COPYTRADE_CONFIG_JSON", config_json)

    cfg = copytrade_config.load_config()

    assert cfg.market_data.quote_ttl_seconds == 5
    assert cfg.feed.enabled is False
    assert cfg.engine.initial_balance == 2500.5


def test_missing_or_invalid_json_falls_back_to_defaults(tmp_path: Path, monkeypatch) -> None:
    _set_runtime_env(monkeypatch, tmp_path)
    config_json = tmp_path / "config.json"
    config_json.write_text("{not json", encoding="utf-8")

    cfg = copytrade_config.load_config(config_json)

    assert cfg.engine.initial_balance == 100_000.0
    assert cfg.market_data.provider == "synthetic"
    assert cfg.engine.fill_price_source == "market"


def test_load_config_creates_state_directories(tmp_path: Path, monkeypatch) -> None:
    _set_runtime_env(monkeypatch, tmp_path / "state")

    copytrade_config.load_config(tmp_path / "absent.json")

    assert (tmp_path / "state").is_dir()


def test_invalid_provider_is_rejected() -> None:
    with pytest.raises(ValueError):
        copytrade_config.MarketDataConfig(provider="bloomberg")
