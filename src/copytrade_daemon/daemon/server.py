"""Unix-domain socket daemon exposing the copytrade command protocol."""

from __future__ import annotations

import argparse
import asyncio
from difflib import get_close_matches
import logging
import os
import random
import signal
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from copytrade_daemon.audit.logger import AuditLogger
from copytrade_daemon.audit.query import query_commands, query_fills, query_rejections
from copytrade_daemon.config import AppConfig, load_config
from copytrade_daemon.daemon.feed import MockTradeFeed
from copytrade_daemon.data.traders import TRADERS, get_trader
from copytrade_daemon.engine.dispatcher import CopyResult, TradeDispatcher
from copytrade_daemon.engine.ledger import PortfolioLedger
from copytrade_daemon.engine.policy import CopyPolicyEvaluator
from copytrade_daemon.engine.quote_cache import QuoteCache
from copytrade_daemon.engine.registry import FollowRegistry, PortfolioStore
from copytrade_daemon.exceptions import CopyTradeError, ErrorCode
from copytrade_daemon.models.copy import CopySettings
from copytrade_daemon.models.events import Event, EventTopic
from copytrade_daemon.models.market import Quote
from copytrade_daemon.models.portfolio import Portfolio, PortfolioSummary
from copytrade_daemon.models.traders import Trader
from copytrade_daemon.models.trades import MANUAL_TRADER_ID, Side, Trade, TradeSource
from copytrade_daemon.protocol import ErrorResponse, EventEnvelope, Request, Response, decode_request, encode_model, frame_payload, read_framed
from copytrade_daemon.providers import build_provider
from copytrade_daemon.providers.synthetic import SyntheticQuoteProvider

logger = logging.getLogger(__name__)

KNOWN_COMMANDS: tuple[str, ...] = (
    "daemon.status",
    "daemon.stop",
    "session.start",
    "session.end",
    "portfolio.get",
    "portfolio.list",
    "portfolio.refresh",
    "traders.list",
    "trader.get",
    "trader.follow",
    "trader.unfollow",
    "copy.settings.set",
    "copy.settings.get",
    "copy.stop",
    "trade.manual",
    "trade.ingest",
    "quote.get",
    "events.subscribe",
    "audit.commands",
    "audit.fills",
    "audit.rejections",
    "schema.get",
)
DEFAULT_HISTORY_LIMIT = 50


@dataclass
class Subscriber:
    writer: asyncio.StreamWriter
    topics: set[str]
    user_id: str | None = None


class DaemonServer:
    def __init__(self, cfg: AppConfig) -> None:
        self._cfg = cfg
        self._start_monotonic = time.monotonic()
        self._shutdown = asyncio.Event()

        self._audit = AuditLogger(cfg.logging.audit_db)
        self._provider = build_provider(cfg.market_data)
        self._quotes = QuoteCache(
            self._provider,
            ttl_seconds=cfg.market_data.quote_ttl_seconds,
            timeout_seconds=cfg.market_data.request_timeout_seconds,
            fallback=SyntheticQuoteProvider(jitter_pct=cfg.market_data.fallback_jitter_pct),
        )
        self._store = PortfolioStore(initial_balance=cfg.engine.initial_balance)
        self._registry = FollowRegistry(self._store)
        self._ledger = PortfolioLedger(
            self._quotes,
            fill_price_source=cfg.engine.fill_price_source,
            history_limit=cfg.engine.history_limit,
        )
        self._dispatcher = TradeDispatcher(
            store=self._store,
            ledger=self._ledger,
            evaluator=CopyPolicyEvaluator(),
            audit=self._audit,
            event_cb=self._broadcast_event,
        )
        self._feed = MockTradeFeed(
            quotes=self._quotes,
            on_trade=self._on_upstream_trade,
            on_market=self._on_market_quote,
            speedup=cfg.feed.speedup,
            min_interval_seconds=cfg.feed.min_interval_seconds,
            market_interval_seconds=cfg.feed.market_interval_seconds,
            rng=random.Random(cfg.feed.seed),
        )

        self._server: asyncio.AbstractServer | None = None
        self._subscribers: list[Subscriber] = []

    @property
    def socket_path(self) -> Path:
        return self._cfg.runtime.socket_path

    async def start(self) -> None:
        self._cfg.ensure_dirs()
        await self._audit.start()
        await self._provider.start()

        if self.socket_path.exists():
            if await _socket_is_active(self.socket_path):
                raise RuntimeError(f"daemon socket already in use: {self.socket_path}")
            self.socket_path.unlink()

        self._server = await asyncio.start_unix_server(self._handle_client, path=str(self.socket_path))
        os.chmod(self.socket_path, 0o600)
        self._cfg.runtime.pid_file.write_text(str(os.getpid()), encoding="utf-8")

        if self._cfg.feed.enabled:
            self._feed.start()
        logger.info("daemon started socket=%s provider=%s", self.socket_path, self._provider.name)

    async def serve(self) -> None:
        if not self._server:
            raise RuntimeError("server not started")

        async with self._server:
            await self._shutdown.wait()

    async def stop(self) -> None:
        if self._shutdown.is_set():
            return

        self._shutdown.set()
        await self._feed.stop()

        for sub in list(self._subscribers):
            sub.writer.close()
            await _safe_wait_closed(sub.writer)
        self._subscribers.clear()

        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

        await self._provider.stop()
        await self._audit.close()

        if self.socket_path.exists():
            self.socket_path.unlink()
        if self._cfg.runtime.pid_file.exists():
            self._cfg.runtime.pid_file.unlink()
        logger.info("daemon stopped")

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        request: Request | None = None
        result_code = 0

        try:
            payload = await read_framed(reader)
            request = decode_request(payload)

            if request.stream and request.command == "events.subscribe":
                await self._register_subscriber(request, reader, writer)
                return

            data = await self._dispatch(request)
            response = Response(request_id=request.request_id, ok=True, data=data)
        except asyncio.IncompleteReadError:
            writer.close()
            await _safe_wait_closed(writer)
            return
        except (ValidationError, KeyError, TypeError, ValueError) as exc:
            req_id = request.request_id if request else ""
            err = _invalid_args_error(exc)
            result_code = err.exit_code
            response = Response(
                request_id=req_id,
                ok=False,
                error=ErrorResponse.model_validate(err.to_error_payload()),
            )
        except CopyTradeError as exc:
            result_code = exc.exit_code
            req_id = request.request_id if request else ""
            response = Response(
                request_id=req_id,
                ok=False,
                error=ErrorResponse.model_validate(exc.to_error_payload()),
            )
        except Exception as exc:
            logger.exception("unhandled daemon error")
            result_code = 1
            req_id = request.request_id if request else ""
            response = Response(
                request_id=req_id,
                ok=False,
                error=ErrorResponse(
                    code=ErrorCode.INTERNAL_ERROR.value,
                    message=str(exc),
                ),
            )

        writer.write(frame_payload(encode_model(response)))
        await writer.drain()
        writer.close()
        await _safe_wait_closed(writer)

        if request and not self._shutdown.is_set():
            await self._audit.log_command(
                request.source,
                request.command,
                request.params,
                result_code,
                request_id=request.request_id,
            )

    async def _register_subscriber(
        self,
        request: Request,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        topics = set(str(v).lower() for v in request.params.get("topics", []))
        if not topics:
            topics = {e.value for e in EventTopic}
        invalid_topics = sorted(topics - {e.value for e in EventTopic})
        if invalid_topics:
            valid = sorted(e.value for e in EventTopic)
            raise CopyTradeError(
                ErrorCode.INVALID_ARGS,
                f"unsupported subscription topic(s): {', '.join(invalid_topics)}",
                details={"invalid_topics": invalid_topics, "valid_topics": valid},
                suggestion=f"Use topics from: {', '.join(valid)}",
            )
        user_id = request.params.get("user_id")

        sub = Subscriber(writer=writer, topics=topics, user_id=str(user_id) if user_id else None)
        self._subscribers.append(sub)
        await self._audit.log_command(
            request.source,
            request.command,
            request.params,
            0,
            request_id=request.request_id,
        )

        response = Response(request_id=request.request_id, ok=True, data={"subscribed": sorted(topics)})
        writer.write(frame_payload(encode_model(response)))
        await writer.drain()

        try:
            while not reader.at_eof() and not self._shutdown.is_set():
                await asyncio.sleep(1)
        finally:
            if sub in self._subscribers:
                self._subscribers.remove(sub)
            writer.close()
            await _safe_wait_closed(writer)

    async def _dispatch(self, request: Request) -> dict[str, Any]:
        cmd = request.command
        p = request.params

        if cmd == "daemon.status":
            return self._cmd_daemon_status()
        if cmd == "daemon.stop":
            asyncio.create_task(self.stop())
            return {"stopping": True}

        if cmd == "session.start":
            user_id = p.get("user_id")
            balance = p.get("initial_balance")
            portfolio = self._store.create(
                user_id=str(user_id) if user_id else None,
                initial_balance=float(balance) if balance is not None else None,
            )
            await self._emit_portfolio(portfolio)
            return {"user_id": portfolio.user_id, "portfolio": portfolio.snapshot(history_limit=DEFAULT_HISTORY_LIMIT)}

        if cmd == "session.end":
            user_id = str(p["user_id"])
            return {"user_id": user_id, "ended": self._store.remove(user_id)}

        if cmd == "portfolio.get":
            portfolio = self._store.require(str(p["user_id"]))
            history_limit = _parse_positive_int(p.get("history_limit", DEFAULT_HISTORY_LIMIT), field_name="history_limit", min_value=0)
            return {
                "portfolio": portfolio.snapshot(history_limit=history_limit),
                "summary": PortfolioSummary.from_portfolio(portfolio).model_dump(mode="json"),
            }

        if cmd == "portfolio.list":
            return {
                "portfolios": [PortfolioSummary.from_portfolio(x).model_dump(mode="json") for x in self._store.all()]
            }

        if cmd == "portfolio.refresh":
            portfolio = await self._dispatcher.refresh_portfolio(str(p["user_id"]))
            return {"portfolio": portfolio.snapshot(history_limit=DEFAULT_HISTORY_LIMIT)}

        if cmd == "traders.list":
            following: set[int] = set()
            if p.get("user_id"):
                following = self._store.require(str(p["user_id"])).followed_trader_ids
            return {"traders": [_trader_payload(t, following=t.id in following) for t in TRADERS]}

        if cmd == "trader.get":
            trader = _require_trader(p.get("trader_id"))
            limit = _parse_positive_int(p.get("limit", 5), field_name="limit", min_value=1)
            return {
                "trader": _trader_payload(trader),
                "recent_trades": [t.model_dump(mode="json") for t in self._feed.recent_trades(trader.id, limit)],
            }

        if cmd == "trader.follow":
            user_id = str(p["user_id"])
            self._store.require(user_id)
            trader = _require_trader(p.get("trader_id"))
            changed = self._registry.follow(user_id, trader.id)
            if changed:
                await self._emit_follow(user_id, trader.id, following=True)
            return {"user_id": user_id, "trader_id": trader.id, "following": True, "changed": changed}

        if cmd == "trader.unfollow":
            user_id = str(p["user_id"])
            self._store.require(user_id)
            trader_id = _parse_trader_id(p.get("trader_id"))
            async with self._store.lock(user_id):
                was_following = self._registry.is_following(user_id, trader_id)
                self._registry.unfollow(user_id, trader_id)
            if was_following:
                await self._emit_follow(user_id, trader_id, following=False)
            return {"user_id": user_id, "trader_id": trader_id, "following": False, "changed": was_following}

        if cmd == "copy.settings.set":
            user_id = str(p["user_id"])
            self._store.require(user_id)
            trader = _require_trader(p.get("trader_id"))
            settings = CopySettings.model_validate(p.get("settings") or {})
            async with self._store.lock(user_id):
                newly_followed = not self._registry.is_following(user_id, trader.id)
                self._registry.update_copy_settings(user_id, trader.id, settings)
            if newly_followed:
                await self._emit_follow(user_id, trader.id, following=True)
            else:
                await self._emit_copy_settings(user_id, trader.id, settings)
            return {
                "user_id": user_id,
                "trader_id": trader.id,
                "settings": settings.model_dump(mode="json"),
                "warnings": settings.configuration_errors(),
            }

        if cmd == "copy.settings.get":
            portfolio = self._store.require(str(p["user_id"]))
            if p.get("trader_id") is not None:
                trader_id = _parse_trader_id(p.get("trader_id"))
                found = self._registry.get_copy_settings(portfolio.user_id, trader_id)
                return {
                    "trader_id": trader_id,
                    "following": trader_id in portfolio.followed_trader_ids,
                    "settings": found.model_dump(mode="json") if found else None,
                }
            return {
                "settings": {
                    str(tid): s.model_dump(mode="json") for tid, s in sorted(portfolio.copy_settings.items())
                }
            }

        if cmd == "copy.stop":
            user_id = str(p["user_id"])
            self._store.require(user_id)
            trader_id = _parse_trader_id(p.get("trader_id"))
            async with self._store.lock(user_id):
                stopped = self._registry.stop_copying(user_id, trader_id)
                current = self._registry.get_copy_settings(user_id, trader_id)
            if stopped and current is not None:
                await self._emit_copy_settings(user_id, trader_id, current)
            return {"user_id": user_id, "trader_id": trader_id, "stopped": stopped}

        if cmd == "trade.manual":
            user_id = str(p["user_id"])
            self._store.require(user_id)
            symbol = str(p["symbol"]).upper()
            price = p.get("price")
            trade = Trade(
                trader_id=MANUAL_TRADER_ID,
                symbol=symbol,
                side=Side(str(p["side"]).lower()),
                quantity=int(p["quantity"]),
                price=float(price) if price is not None else await self._quotes.get_price(symbol),
                source=TradeSource.MANUAL,
            )
            filled = await self._dispatcher.execute_manual_trade(user_id, trade)
            portfolio = self._store.require(user_id)
            return {
                "trade": filled.model_dump(mode="json"),
                "summary": PortfolioSummary.from_portfolio(portfolio).model_dump(mode="json"),
            }

        if cmd == "trade.ingest":
            raw = p.get("trade", p)
            trade = Trade.from_event(dict(raw))
            results = await self._on_upstream_trade(trade)
            return {
                "trade": trade.model_dump(mode="json"),
                "results": [r.model_dump(mode="json") for r in results],
            }

        if cmd == "quote.get":
            symbols = [str(s).upper() for s in p.get("symbols", []) if str(s).strip()]
            if not symbols:
                raise CopyTradeError(
                    ErrorCode.INVALID_ARGS,
                    "symbols is required and must contain at least one item",
                    suggestion="Example: copytrade quote AAPL MSFT",
                )
            quotes = [await self._quotes.quote(symbol) for symbol in symbols]
            return {"quotes": [q.model_dump(mode="json") for q in quotes]}

        if cmd == "events.subscribe":
            raise CopyTradeError(
                ErrorCode.INVALID_ARGS,
                "events.subscribe requires a streaming request",
                suggestion="Use `copytrade events` or Client.subscribe().",
            )

        if cmd == "audit.commands":
            rows = await query_commands(
                self._audit,
                source=p.get("source"),
                since=p.get("since"),
                request_id=p.get("request_id"),
                limit=p.get("limit"),
            )
            return {"commands": rows}

        if cmd == "audit.fills":
            rows = await query_fills(
                self._audit,
                user_id=p.get("user_id"),
                symbol=p.get("symbol"),
                source=p.get("source"),
                since=p.get("since"),
                limit=p.get("limit"),
            )
            return {"fills": rows}

        if cmd == "audit.rejections":
            rows = await query_rejections(
                self._audit,
                user_id=p.get("user_id"),
                code=p.get("code"),
                since=p.get("since"),
                limit=p.get("limit"),
            )
            return {"rejections": rows}

        if cmd == "schema.get":
            requested = p.get("command")
            return _schema_payload(command=str(requested) if requested else None)

        raise _unknown_command_error(cmd)

    def _cmd_daemon_status(self) -> dict[str, Any]:
        return {
            "uptime_seconds": round(time.monotonic() - self._start_monotonic, 3),
            "socket": str(self.socket_path),
            "provider": self._provider.name,
            "portfolios": len(self._store),
            "feed": {
                "enabled": self._cfg.feed.enabled,
                "running": self._feed.running,
                "trades_emitted": self._feed.trades_emitted,
                "speedup": self._cfg.feed.speedup,
            },
            "quote_cache": {
                "entries": len(self._quotes.entries()),
                "ttl_seconds": self._cfg.market_data.quote_ttl_seconds,
            },
            "subscribers": len(self._subscribers),
        }

    async def _on_upstream_trade(self, trade: Trade) -> list[CopyResult]:
        await self._broadcast_event(Event(topic=EventTopic.TRADES, payload={"trade": trade.model_dump(mode="json")}))
        return await self._dispatcher.handle_trade(trade)

    async def _on_market_quote(self, quote: Quote) -> None:
        await self._broadcast_event(Event(topic=EventTopic.MARKET, payload=quote.model_dump(mode="json")))

    async def _emit_portfolio(self, portfolio: Portfolio) -> None:
        await self._broadcast_event(
            Event(
                topic=EventTopic.PORTFOLIO,
                payload={"user_id": portfolio.user_id, "portfolio": portfolio.snapshot(history_limit=20)},
            )
        )

    async def _emit_follow(self, user_id: str, trader_id: int, *, following: bool) -> None:
        await self._broadcast_event(
            Event(
                topic=EventTopic.FOLLOWS,
                payload={"user_id": user_id, "trader_id": trader_id, "following": following},
            )
        )
        portfolio = self._store.get(user_id)
        if portfolio is not None:
            await self._emit_portfolio(portfolio)

    async def _emit_copy_settings(self, user_id: str, trader_id: int, settings: CopySettings) -> None:
        await self._broadcast_event(
            Event(
                topic=EventTopic.FOLLOWS,
                payload={
                    "user_id": user_id,
                    "trader_id": trader_id,
                    "following": self._registry.is_following(user_id, trader_id),
                    "settings": settings.model_dump(mode="json"),
                },
            )
        )
        portfolio = self._store.get(user_id)
        if portfolio is not None:
            await self._emit_portfolio(portfolio)

    async def _broadcast_event(self, event: Event) -> None:
        if not self._subscribers:
            return

        envelope = EventEnvelope(topic=event.topic.value, data=event.model_dump(mode="json"))
        payload = frame_payload(encode_model(envelope))
        event_user = event.payload.get("user_id")

        stale: list[Subscriber] = []
        for sub in self._subscribers:
            if event.topic.value not in sub.topics:
                continue
            if sub.user_id and event_user and sub.user_id != event_user:
                continue
            try:
                sub.writer.write(payload)
                await sub.writer.drain()
            except Exception:
                stale.append(sub)
        for sub in stale:
            if sub in self._subscribers:
                self._subscribers.remove(sub)


def _parse_trader_id(raw: Any) -> int:
    if raw is None or isinstance(raw, bool):
        raise CopyTradeError(
            ErrorCode.INVALID_ARGS,
            "trader_id is required and must be an integer",
            suggestion="Run `copytrade traders list` to see trader ids.",
        )
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise CopyTradeError(
            ErrorCode.INVALID_ARGS,
            f"trader_id must be an integer, got '{raw}'",
            details={"trader_id": raw},
            suggestion="Run `copytrade traders list` to see trader ids.",
        ) from exc


def _require_trader(raw: Any) -> Trader:
    trader_id = _parse_trader_id(raw)
    trader = get_trader(trader_id)
    if trader is None:
        raise CopyTradeError(
            ErrorCode.UNKNOWN_TRADER,
            f"unknown trader {trader_id}",
            details={"trader_id": trader_id, "known_trader_ids": [t.id for t in TRADERS]},
            suggestion="Run `copytrade traders list` to see trader ids.",
        )
    return trader


def _trader_payload(trader: Trader, *, following: bool | None = None) -> dict[str, Any]:
    payload = trader.model_dump(mode="json")
    if following is not None:
        payload["following"] = following
    return payload


def _parse_positive_int(raw: Any, *, field_name: str, min_value: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise CopyTradeError(
            ErrorCode.INVALID_ARGS,
            f"{field_name} must be an integer",
            details={field_name: raw},
            suggestion=f"Use --{field_name.replace('_', '-')} {max(min_value, 1)}",
        ) from exc
    if value < min_value:
        raise CopyTradeError(
            ErrorCode.INVALID_ARGS,
            f"{field_name} must be >= {min_value}",
            details={field_name: value},
            suggestion=f"Use --{field_name.replace('_', '-')} {max(min_value, 1)}",
        )
    return value


def _schema_payload(command: str | None = None) -> dict[str, Any]:
    schemas = _command_schema_registry()
    if command:
        if command not in schemas:
            raise CopyTradeError(
                ErrorCode.INVALID_ARGS,
                f"unknown schema command '{command}'",
                details={"known_commands": sorted(schemas)},
                suggestion="Run `copytrade schema` to list available commands.",
            )
        return {
            "schema_version": "v1",
            "command": command,
            "schema": schemas[command],
            "envelope": _cli_envelope_schema(),
        }
    return {
        "schema_version": "v1",
        "commands": schemas,
        "envelope": _cli_envelope_schema(),
    }


def _cli_envelope_schema() -> dict[str, Any]:
    return {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "ok": {"type": "boolean"},
            "data": {},
            "error": {
                "anyOf": [
                    {"type": "null"},
                    {
                        "type": "object",
                        "additionalProperties": True,
                        "properties": {
                            "code": {"type": "string"},
                            "message": {"type": "string"},
                            "details": {"type": "object"},
                            "suggestion": {"type": ["string", "null"]},
                        },
                        "required": ["code", "message"],
                    },
                ]
            },
            "meta": {
                "type": "object",
                "additionalProperties": True,
                "properties": {
                    "schema_version": {"const": "v1"},
                    "command": {"type": "string"},
                    "request_id": {"type": "string"},
                    "timestamp": {"type": "string", "format": "date-time"},
                },
                "required": ["schema_version", "command", "request_id", "timestamp"],
            },
        },
        "required": ["ok", "data", "error", "meta"],
    }


def _command_schema_registry() -> dict[str, dict[str, Any]]:
    any_json: dict[str, Any] = {}
    scalar = {"type": ["string", "number", "boolean", "null"]}
    base = {
        command: {
            "params": {"type": "object", "additionalProperties": True},
            "result": {"anyOf": [any_json, {"type": "array"}, scalar]},
        }
        for command in KNOWN_COMMANDS
    }
    user_only = {
        "type": "object",
        "additionalProperties": False,
        "properties": {"user_id": {"type": "string"}},
        "required": ["user_id"],
    }
    user_and_trader = {
        "type": "object",
        "additionalProperties": False,
        "properties": {"user_id": {"type": "string"}, "trader_id": {"type": "integer"}},
        "required": ["user_id", "trader_id"],
    }

    base["session.start"] = {
        "params": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "user_id": {"type": "string"},
                "initial_balance": {"type": "number", "minimum": 0},
            },
        },
        "result": {
            "type": "object",
            "additionalProperties": False,
            "properties": {"user_id": {"type": "string"}, "portfolio": {"type": "object"}},
            "required": ["user_id", "portfolio"],
        },
    }

    base["portfolio.get"] = {
        "params": {
            "type": "object",
            "additionalProperties": False,
            "properties": {"user_id": {"type": "string"}, "history_limit": {"type": "integer", "minimum": 0}},
            "required": ["user_id"],
        },
        "result": {
            "type": "object",
            "additionalProperties": False,
            "properties": {"portfolio": {"type": "object"}, "summary": {"type": "object"}},
            "required": ["portfolio", "summary"],
        },
    }
    base["portfolio.refresh"] = {"params": user_only, "result": {"type": "object", "additionalProperties": True}}
    base["session.end"] = {"params": user_only, "result": {"type": "object", "additionalProperties": True}}

    for command in ("trader.follow", "trader.unfollow", "copy.stop"):
        base[command] = {"params": user_and_trader, "result": {"type": "object", "additionalProperties": True}}

    base["copy.settings.set"] = {
        "params": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "user_id": {"type": "string"},
                "trader_id": {"type": "integer"},
                "settings": {
                    "type": "object",
                    "additionalProperties": False,
                    "properties": {
                        "enabled": {"type": "boolean"},
                        "position_size_type": {"enum": ["fixed", "percentage"]},
                        "position_size": {"type": "number"},
                        "max_position_size": {"type": "number"},
                        "stop_loss_percent": {"type": ["number", "null"]},
                        "take_profit_percent": {"type": ["number", "null"]},
                        "max_daily_loss": {"type": ["number", "null"]},
                        "max_drawdown_percent": {"type": ["number", "null"]},
                    },
                },
            },
            "required": ["user_id", "trader_id"],
        },
        "result": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "user_id": {"type": "string"},
                "trader_id": {"type": "integer"},
                "settings": {"type": "object"},
                "warnings": {"type": "array", "items": {"type": "string"}},
            },
            "required": ["user_id", "trader_id", "settings", "warnings"],
        },
    }

    base["trade.manual"] = {
        "params": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "user_id": {"type": "string"},
                "side": {"enum": ["buy", "sell"]},
                "symbol": {"type": "string"},
                "quantity": {"type": "integer", "exclusiveMinimum": 0},
                "price": {"type": "number", "exclusiveMinimum": 0},
            },
            "required": ["user_id", "side", "symbol", "quantity"],
        },
        "result": {
            "type": "object",
            "additionalProperties": False,
            "properties": {"trade": {"type": "object"}, "summary": {"type": "object"}},
            "required": ["trade", "summary"],
        },
    }

    base["trade.ingest"] = {
        "params": {
            "type": "object",
            "additionalProperties": True,
            "properties": {"trade": {"type": "object"}},
        },
        "result": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "trade": {"type": "object"},
                "results": {"type": "array", "items": {"type": "object"}},
            },
            "required": ["trade", "results"],
        },
    }

    base["quote.get"] = {
        "params": {
            "type": "object",
            "additionalProperties": False,
            "properties": {"symbols": {"type": "array", "items": {"type": "string"}, "minItems": 1}},
            "required": ["symbols"],
        },
        "result": {
            "type": "object",
            "additionalProperties": False,
            "properties": {"quotes": {"type": "array", "items": {"type": "object"}}},
            "required": ["quotes"],
        },
    }

    base["events.subscribe"] = {
        "params": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "topics": {"type": "array", "items": {"enum": sorted(e.value for e in EventTopic)}},
                "user_id": {"type": "string"},
            },
        },
        "result": {"type": "object", "additionalProperties": True},
    }

    base["audit.commands"] = {
        "params": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "source": {"enum": ["cli", "sdk"]},
                "since": {"type": "string"},
                "request_id": {"type": "string"},
                "limit": {"type": "integer", "minimum": 1},
            },
        },
        "result": {
            "type": "object",
            "additionalProperties": False,
            "properties": {"commands": {"type": "array", "items": {"type": "object"}}},
            "required": ["commands"],
        },
    }

    base["schema.get"] = {
        "params": {
            "type": "object",
            "additionalProperties": False,
            "properties": {"command": {"type": "string"}},
        },
        "result": {"type": "object", "additionalProperties": True},
    }
    return base


def _unknown_command_error(command: str) -> CopyTradeError:
    matches = get_close_matches(command, KNOWN_COMMANDS, n=3, cutoff=0.45)
    suggestion = None
    if matches:
        suggestion = f"Did you mean: {', '.join(matches)}"
    return CopyTradeError(
        ErrorCode.INVALID_ARGS,
        f"unknown command '{command}'",
        details={"known_commands": sorted(KNOWN_COMMANDS)},
        suggestion=suggestion,
    )


def _invalid_args_error(exc: Exception) -> CopyTradeError:
    details: dict[str, Any] = {"exception": type(exc).__name__}
    message = str(exc)
    suggestion = "Run `copytrade --help` or `<command> --help` for expected parameters."
    if isinstance(exc, KeyError):
        missing = str(exc).strip("'")
        details["missing_param"] = missing
        message = f"missing required parameter '{missing}'"
        suggestion = f"Include required parameter `{missing}` and retry."
    elif isinstance(exc, ValidationError):
        details["validation"] = exc.errors(include_url=False, include_context=False)
        message = "request validation failed"
    return CopyTradeError(ErrorCode.INVALID_ARGS, message, details=details, suggestion=suggestion)


async def _safe_wait_closed(writer: asyncio.StreamWriter) -> None:
    try:
        await writer.wait_closed()
    except Exception:
        return


async def _socket_is_active(socket_path: Path) -> bool:
    try:
        _, writer = await asyncio.open_unix_connection(str(socket_path))
    except Exception:
        return False
    writer.close()
    await _safe_wait_closed(writer)
    return True


async def run_daemon(config_path: Path | None = None) -> None:
    cfg = load_config(config_path)

    logging.basicConfig(
        level=getattr(logging, cfg.logging.level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        handlers=[logging.FileHandler(cfg.logging.log_file), logging.StreamHandler()],
    )

    daemon = DaemonServer(cfg)
    await daemon.start()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda: asyncio.create_task(daemon.stop()))
        except NotImplementedError:
            pass

    await daemon.serve()


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="copytrade daemon")
    parser.add_argument("--config", type=Path, default=None, help="path to config.json")
    return parser.parse_args(argv)


def main() -> None:
    args = _parse_args()
    try:
        asyncio.run(run_daemon(args.config))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
