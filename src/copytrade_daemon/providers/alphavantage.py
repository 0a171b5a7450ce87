"""Alpha Vantage GLOBAL_QUOTE provider built on httpx."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import UTC, datetime
from typing import Any

import httpx

from copytrade_daemon.exceptions import CopyTradeError, ErrorCode
from copytrade_daemon.models.market import Quote
from copytrade_daemon.providers.base import QuoteProvider

logger = logging.getLogger(__name__)

ALPHAVANTAGE_URL = "https://www.alphavantage.co/query"


class AlphaVantageProvider(QuoteProvider):
    """Rate-limited quote source; the free tier allows ~5 calls per minute."""

    name = "alphavantage"

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: float = 5.0,
        min_interval_seconds: float = 12.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout_seconds
        self._min_interval = max(0.0, min_interval_seconds)
        self._client = client
        self._owns_client = client is None
        self._throttle_lock = asyncio.Lock()
        self._last_request_at: float | None = None

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout, connect=min(self._timeout, 5.0)))
            self._owns_client = True

    async def stop(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def quote(self, symbol: str) -> Quote:
        sym = symbol.upper().strip()
        payload = await self._request_json({"function": "GLOBAL_QUOTE", "symbol": sym, "apikey": self._api_key})
        row = payload.get("Global Quote")
        if not isinstance(row, dict) or not row:
            note = payload.get("Note") or payload.get("Information") or payload.get("Error Message")
            raise CopyTradeError(
                ErrorCode.QUOTE_UNAVAILABLE,
                f"no quote returned for {sym}",
                details={"symbol": sym, "note": str(note) if note else None},
            )

        price = _as_float(row.get("05. price"))
        if price is None or price <= 0:
            raise CopyTradeError(
                ErrorCode.QUOTE_UNAVAILABLE,
                f"quote for {sym} has no usable price",
                details={"symbol": sym},
            )
        change_pct_raw = str(row.get("10. change percent") or "").replace("%", "").strip()
        return Quote(
            symbol=sym,
            price=price,
            timestamp=datetime.now(UTC),
            source=self.name,
            change=_as_float(row.get("09. change")),
            change_percent=_as_float(change_pct_raw),
            volume=_as_float(row.get("06. volume")),
        )

    async def _throttle(self) -> None:
        async with self._throttle_lock:
            if self._last_request_at is not None:
                wait = self._min_interval - (time.monotonic() - self._last_request_at)
                if wait > 0:
                    await asyncio.sleep(wait)
            self._last_request_at = time.monotonic()

    async def _request_json(self, params: dict[str, Any]) -> dict[str, Any]:
        if self._client is None:
            await self.start()
        assert self._client is not None

        await self._throttle()
        try:
            response = await self._client.get(ALPHAVANTAGE_URL, params=params)
        except httpx.TimeoutException as exc:
            raise CopyTradeError(
                ErrorCode.TIMEOUT,
                "quote request timed out",
                details={"symbol": params.get("symbol"), "error": str(exc)},
            ) from exc
        except httpx.RequestError as exc:
            raise CopyTradeError(
                ErrorCode.QUOTE_UNAVAILABLE,
                f"quote request failed: {exc}",
                details={"symbol": params.get("symbol"), "error_type": type(exc).__name__},
            ) from exc

        if response.status_code >= 400:
            raise CopyTradeError(
                ErrorCode.QUOTE_UNAVAILABLE,
                f"quote request returned HTTP {response.status_code}",
                details={"symbol": params.get("symbol"), "status_code": response.status_code},
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise CopyTradeError(
                ErrorCode.QUOTE_UNAVAILABLE,
                "quote response was not JSON",
                details={"symbol": params.get("symbol")},
            ) from exc
        if not isinstance(payload, dict):
            return {}
        return payload


def _as_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
