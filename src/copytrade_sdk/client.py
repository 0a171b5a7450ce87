"""Async Python SDK for copytrade-daemon."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterable
from pathlib import Path
from typing import Any

from copytrade_daemon.config import load_config
from copytrade_daemon.exceptions import CopyTradeError, ErrorCode
from copytrade_daemon.protocol import Request, Response, decode_event, decode_response, encode_model, frame_payload, read_framed
from copytrade_sdk.types import AuditSource, EventTopic, PositionSizeType, TradeSide


class Client:
    """Async copytrade client over the daemon Unix socket.

    Every operation routes through `copytrade-daemon`, which owns the
    portfolios and journals each command.
    """

    def __init__(self, socket_path: str | Path | None = None, timeout_seconds: int | None = None) -> None:
        cfg = load_config()
        self._socket_path = Path(socket_path).expanduser() if socket_path else cfg.runtime.socket_path
        self._timeout = timeout_seconds or cfg.runtime.request_timeout_seconds

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, *_: object) -> None:
        return None

    async def _open(self) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        try:
            return await asyncio.open_unix_connection(str(self._socket_path))
        except (FileNotFoundError, ConnectionRefusedError) as exc:
            raise CopyTradeError(
                ErrorCode.DAEMON_NOT_RUNNING,
                "copytrade-daemon socket not found",
                details={"socket_path": str(self._socket_path)},
                suggestion="Start the daemon first: `copytrade daemon start`.",
            ) from exc

    async def _request(self, command: str, params: dict[str, Any] | None = None, *, source: str = "sdk") -> Any:
        req = Request(command=command, params=params or {}, source=source)
        reader, writer = await self._open()

        writer.write(frame_payload(encode_model(req)))
        await writer.drain()

        try:
            payload = await asyncio.wait_for(read_framed(reader), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            writer.close()
            await _safe_wait_closed(writer)
            raise CopyTradeError(
                ErrorCode.TIMEOUT,
                "request timed out waiting for daemon response",
                details={"timeout_seconds": self._timeout},
                suggestion="Retry or increase runtime.request_timeout_seconds in config.",
            ) from exc

        writer.close()
        await _safe_wait_closed(writer)

        response = decode_response(payload)
        return _unwrap_response(response)

    async def subscribe(
        self,
        topics: Iterable[EventTopic] = (),
        *,
        user_id: str | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Stream daemon events for the requested topics (all topics when empty)."""
        params: dict[str, Any] = {"topics": list(topics)}
        if user_id:
            params["user_id"] = user_id
        req = Request(command="events.subscribe", params=params, stream=True, source="sdk")
        reader, writer = await self._open()

        writer.write(frame_payload(encode_model(req)))
        await writer.drain()

        first = decode_response(await read_framed(reader))
        _unwrap_response(first)

        try:
            while True:
                payload = await read_framed(reader)
                event = decode_event(payload)
                yield event.model_dump(mode="json")
        except asyncio.IncompleteReadError:
            return
        finally:
            writer.close()
            await _safe_wait_closed(writer)

    async def daemon_status(self) -> dict[str, Any]:
        """Fetch daemon uptime, feed state and quote cache size."""
        return await self._request("daemon.status")

    async def daemon_stop(self) -> dict[str, Any]:
        """Request graceful daemon shutdown."""
        return await self._request("daemon.stop")

    async def start_session(self, user_id: str | None = None, initial_balance: float | None = None) -> dict[str, Any]:
        """Create a portfolio; returns the existing one when ``user_id`` is already live."""
        params: dict[str, Any] = {}
        if user_id:
            params["user_id"] = user_id
        if initial_balance is not None:
            params["initial_balance"] = initial_balance
        return await self._request("session.start", params)

    async def end_session(self, user_id: str) -> dict[str, Any]:
        return await self._request("session.end", {"user_id": user_id})

    async def portfolio(self, user_id: str, history_limit: int = 50) -> dict[str, Any]:
        return await self._request("portfolio.get", {"user_id": user_id, "history_limit": history_limit})

    async def portfolios(self) -> list[dict[str, Any]]:
        data = await self._request("portfolio.list")
        return data.get("portfolios", [])

    async def refresh_portfolio(self, user_id: str) -> dict[str, Any]:
        """Re-mark holdings at current quotes."""
        return await self._request("portfolio.refresh", {"user_id": user_id})

    async def traders(self, user_id: str | None = None) -> list[dict[str, Any]]:
        params: dict[str, Any] = {}
        if user_id:
            params["user_id"] = user_id
        data = await self._request("traders.list", params)
        return data.get("traders", [])

    async def trader(self, trader_id: int, limit: int = 5) -> dict[str, Any]:
        return await self._request("trader.get", {"trader_id": trader_id, "limit": limit})

    async def follow(self, user_id: str, trader_id: int) -> dict[str, Any]:
        return await self._request("trader.follow", {"user_id": user_id, "trader_id": trader_id})

    async def unfollow(self, user_id: str, trader_id: int) -> dict[str, Any]:
        """Unfollow a trader; any copy settings for that trader are disabled."""
        return await self._request("trader.unfollow", {"user_id": user_id, "trader_id": trader_id})

    async def set_copy_settings(
        self,
        user_id: str,
        trader_id: int,
        *,
        enabled: bool = True,
        position_size_type: PositionSizeType = "fixed",
        position_size: float = 1000.0,
        max_position_size: float = 10_000.0,
        stop_loss_percent: float | None = None,
        take_profit_percent: float | None = None,
        max_daily_loss: float | None = None,
        max_drawdown_percent: float | None = None,
    ) -> dict[str, Any]:
        settings: dict[str, Any] = {
            "enabled": enabled,
            "position_size_type": position_size_type,
            "position_size": position_size,
            "max_position_size": max_position_size,
            "stop_loss_percent": stop_loss_percent,
            "take_profit_percent": take_profit_percent,
            "max_daily_loss": max_daily_loss,
            "max_drawdown_percent": max_drawdown_percent,
        }
        return await self._request(
            "copy.settings.set",
            {"user_id": user_id, "trader_id": trader_id, "settings": settings},
        )

    async def copy_settings(self, user_id: str, trader_id: int | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {"user_id": user_id}
        if trader_id is not None:
            params["trader_id"] = trader_id
        return await self._request("copy.settings.get", params)

    async def stop_copying(self, user_id: str, trader_id: int) -> dict[str, Any]:
        return await self._request("copy.stop", {"user_id": user_id, "trader_id": trader_id})

    async def trade(
        self,
        user_id: str,
        *,
        side: TradeSide,
        symbol: str,
        quantity: int,
        price: float | None = None,
    ) -> dict[str, Any]:
        """Execute a manual trade; the fill price follows the daemon's fill-price source."""
        params: dict[str, Any] = {"user_id": user_id, "side": side, "symbol": symbol, "quantity": quantity}
        if price is not None:
            params["price"] = price
        return await self._request("trade.manual", params)

    async def ingest_trade(self, trade: dict[str, Any]) -> dict[str, Any]:
        """Inject an upstream trader trade and return the per-portfolio copy results."""
        return await self._request("trade.ingest", {"trade": trade})

    async def quote(self, *symbols: str) -> list[dict[str, Any]]:
        data = await self._request("quote.get", {"symbols": list(symbols)})
        return data.get("quotes", [])

    async def audit_commands(
        self,
        source: AuditSource | None = None,
        since: str | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if source:
            params["source"] = source
        if since:
            params["since"] = since
        if limit:
            params["limit"] = limit
        return await self._request("audit.commands", params)

    async def audit_fills(
        self,
        user_id: str | None = None,
        symbol: str | None = None,
        since: str | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if user_id:
            params["user_id"] = user_id
        if symbol:
            params["symbol"] = symbol
        if since:
            params["since"] = since
        if limit:
            params["limit"] = limit
        return await self._request("audit.fills", params)

    async def audit_rejections(
        self,
        user_id: str | None = None,
        code: str | None = None,
        since: str | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if user_id:
            params["user_id"] = user_id
        if code:
            params["code"] = code
        if since:
            params["since"] = since
        if limit:
            params["limit"] = limit
        return await self._request("audit.rejections", params)

    async def schema(self, command: str | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if command:
            params["command"] = command
        return await self._request("schema.get", params)


def _unwrap_response(response: Response) -> Any:
    if response.ok:
        return response.data

    error = response.error
    if not error:
        raise CopyTradeError(ErrorCode.INTERNAL_ERROR, "daemon returned malformed error response")

    code = ErrorCode(error.code) if error.code in {e.value for e in ErrorCode} else ErrorCode.INTERNAL_ERROR
    raise CopyTradeError(code, error.message, details=error.details, suggestion=error.suggestion)


async def _safe_wait_closed(writer: asyncio.StreamWriter) -> None:
    try:
        await writer.wait_closed()
    except Exception:
        return
