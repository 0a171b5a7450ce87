"""Copytrade config loading from config.json plus env overrides."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


def _env_path(name: str, fallback: Path) -> Path:
    raw = os.environ.get(name, "").strip()
    return Path(raw).expanduser() if raw else fallback.expanduser()


_USER_HOME = Path.home()
_XDG_CONFIG_HOME = _env_path("XDG_CONFIG_HOME", _USER_HOME / ".config")
_XDG_STATE_HOME = _env_path("XDG_STATE_HOME", _USER_HOME / ".local" / "state")
DEFAULT_CONFIG_HOME = _XDG_CONFIG_HOME / "copytrade"
DEFAULT_STATE_HOME = _XDG_STATE_HOME / "copytrade"
DEFAULT_COPYTRADE_CONFIG_JSON = _env_path("COPYTRADE_CONFIG_JSON", DEFAULT_CONFIG_HOME / "config.json")

FillPriceSource = Literal["market", "trade"]


class EngineConfig(BaseModel):
    initial_balance: float = 100_000.0
    history_limit: int = 1000
    fill_price_source: FillPriceSource = "market"

    @field_validator("initial_balance")
    @classmethod
    def _validate_initial_balance(cls, value: float) -> float:
        if value < 0:
            raise ValueError("initial_balance must be >= 0")
        return value

    @field_validator("history_limit")
    @classmethod
    def _validate_history_limit(cls, value: int) -> int:
        if value < 1:
            raise ValueError("history_limit must be >= 1")
        return value


class MarketDataConfig(BaseModel):
    provider: str = "synthetic"
    quote_ttl_seconds: int = 60
    request_timeout_seconds: float = 5.0
    fallback_jitter_pct: float = 5.0
    alphavantage_api_key: str = "demo"
    alphavantage_min_interval_seconds: float = 12.0

    @field_validator("provider")
    @classmethod
    def _validate_provider(cls, value: str) -> str:
        provider = value.strip().lower()
        if provider not in {"synthetic", "alphavantage"}:
            raise ValueError("market_data.provider must be 'synthetic' or 'alphavantage'")
        return provider


class FeedConfig(BaseModel):
    enabled: bool = True
    speedup: float = 1.0
    min_interval_seconds: float = 1.0
    market_interval_seconds: float = 120.0
    seed: int | None = None


class LoggingConfig(BaseModel):
    level: str = "INFO"
    audit_db: Path = DEFAULT_STATE_HOME / "audit.db"
    log_file: Path = DEFAULT_STATE_HOME / "copytrade.log"


class OutputConfig(BaseModel):
    default_format: str = "json"


class RuntimeConfig(BaseModel):
    socket_path: Path = DEFAULT_STATE_HOME / "copytrade.sock"
    pid_file: Path = DEFAULT_STATE_HOME / "copytrade-daemon.pid"
    request_timeout_seconds: int = 15


class AppConfig(BaseModel):
    engine: EngineConfig = Field(default_factory=EngineConfig)
    market_data: MarketDataConfig = Field(default_factory=MarketDataConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    def expanded(self) -> "AppConfig":
        clone = self.model_copy(deep=True)
        clone.logging.audit_db = clone.logging.audit_db.expanduser()
        clone.logging.log_file = clone.logging.log_file.expanduser()
        clone.runtime.socket_path = clone.runtime.socket_path.expanduser()
        clone.runtime.pid_file = clone.runtime.pid_file.expanduser()
        return clone

    def ensure_dirs(self) -> None:
        expanded = self.expanded()
        expanded.runtime.socket_path.parent.mkdir(parents=True, exist_ok=True)
        expanded.runtime.pid_file.parent.mkdir(parents=True, exist_ok=True)
        expanded.logging.audit_db.parent.mkdir(parents=True, exist_ok=True)
        expanded.logging.log_file.parent.mkdir(parents=True, exist_ok=True)


# Longest names first so "market_data" wins over a hypothetical "market".
_SECTIONS: tuple[str, ...] = tuple(
    sorted(("engine", "market_data", "feed", "logging", "output", "runtime"), key=len, reverse=True)
)


def _coerce_env_value(value: str) -> Any:
    lower = value.lower()
    if lower in {"true", "false"}:
        return lower == "true"
    if "," in value:
        return [part.strip() for part in value.split(",") if part.strip()]
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        return value


def _read_config_json(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}

    try:
        loaded = json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        return {}

    if isinstance(loaded, dict):
        return loaded
    return {}


def _extract_copytrade_config(data: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    raw = data.get("copytrade")
    if not isinstance(raw, dict):
        return out

    for section in _SECTIONS:
        value = raw.get(section)
        if isinstance(value, dict):
            out[section] = value
    return out


def _split_env_key(key: str) -> tuple[str, str] | None:
    rest = key[len("COPYTRADE_") :].lower()
    for section in _SECTIONS:
        prefix = f"{section}_"
        if rest.startswith(prefix) and len(rest) > len(prefix):
            return section, rest[len(prefix) :]
    return None


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    result = dict(data)
    for key, raw in os.environ.items():
        if not key.startswith("COPYTRADE_") or key == "COPYTRADE_CONFIG_JSON":
            continue
        parsed = _split_env_key(key)
        if parsed is None:
            continue
        section, field = parsed
        section_obj = dict(result.get(section, {}))
        section_obj[field] = _coerce_env_value(raw)
        result[section] = section_obj
    return result


def load_config(path: Path | None = None) -> AppConfig:
    raw = _read_config_json(path or DEFAULT_COPYTRADE_CONFIG_JSON)
    from_file = _extract_copytrade_config(raw)
    merged = _apply_env_overrides(from_file)
    cfg = AppConfig.model_validate(merged).expanded()
    cfg.ensure_dirs()
    return cfg
