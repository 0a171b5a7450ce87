"""Short-TTL quote cache with synthetic fallback pricing."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from typing import Callable

from copytrade_daemon.exceptions import CopyTradeError, ErrorCode
from copytrade_daemon.models.market import Quote, QuoteCacheEntry
from copytrade_daemon.providers.base import QuoteProvider
from copytrade_daemon.providers.synthetic import SyntheticQuoteProvider

logger = logging.getLogger(__name__)


class QuoteCache:
    """Last-known price per symbol.

    Prices fetched inside ``ttl_seconds`` are served from memory. Stale or
    missing entries are refreshed from the provider under a per-symbol lock so
    concurrent lookups share one provider call. Provider failures never
    propagate: a jittered synthetic price is returned instead and is not
    cached, so the next lookup retries the provider.
    """

    def __init__(
        self,
        provider: QuoteProvider,
        *,
        ttl_seconds: int = 60,
        timeout_seconds: float = 5.0,
        fallback: SyntheticQuoteProvider | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._provider = provider
        self._ttl = timedelta(seconds=ttl_seconds)
        self._timeout = timeout_seconds
        self._fallback = fallback or SyntheticQuoteProvider()
        self._clock = clock or (lambda: datetime.now(UTC))
        self._entries: dict[str, QuoteCacheEntry] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def provider(self) -> QuoteProvider:
        return self._provider

    async def get_price(self, symbol: str) -> float:
        return (await self.quote(symbol)).price

    async def quote(self, symbol: str) -> Quote:
        sym = symbol.upper().strip()
        cached = self._fresh_entry(sym)
        if cached is not None:
            return _quote_from_entry(cached)

        lock = self._locks.setdefault(sym, asyncio.Lock())
        async with lock:
            cached = self._fresh_entry(sym)
            if cached is not None:
                return _quote_from_entry(cached)

            try:
                fresh = await asyncio.wait_for(self._provider.quote(sym), timeout=self._timeout)
                if fresh.price <= 0:
                    raise CopyTradeError(
                        ErrorCode.QUOTE_UNAVAILABLE,
                        f"provider returned non-positive price for {sym}",
                        details={"symbol": sym, "price": fresh.price},
                    )
            except asyncio.TimeoutError:
                logger.warning("quote refresh timed out symbol=%s timeout=%.1fs; using fallback", sym, self._timeout)
                return self._fallback_quote(sym)
            except Exception as exc:
                logger.warning("quote refresh failed symbol=%s error=%s; using fallback", sym, exc)
                return self._fallback_quote(sym)

            self.prime(fresh)
            return fresh

    def prime(self, quote: Quote) -> None:
        """Store a price pushed from outside the lookup path."""
        if quote.price <= 0 or quote.fallback_used:
            return
        sym = quote.symbol.upper()
        self._entries[sym] = QuoteCacheEntry(
            symbol=sym,
            price=quote.price,
            fetched_at=self._clock(),
            source=quote.source,
        )

    def peek(self, symbol: str) -> QuoteCacheEntry | None:
        return self._entries.get(symbol.upper().strip())

    def entries(self) -> list[QuoteCacheEntry]:
        return [self._entries[sym] for sym in sorted(self._entries)]

    def invalidate(self, symbol: str | None = None) -> None:
        if symbol is None:
            self._entries.clear()
            return
        self._entries.pop(symbol.upper().strip(), None)

    def _fresh_entry(self, symbol: str) -> QuoteCacheEntry | None:
        entry = self._entries.get(symbol)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self._ttl:
            return None
        return entry

    def _fallback_quote(self, symbol: str) -> Quote:
        return Quote(
            symbol=symbol,
            price=self._fallback.price_for(symbol),
            timestamp=self._clock(),
            source="fallback",
            fallback_used=True,
        )


def _quote_from_entry(entry: QuoteCacheEntry) -> Quote:
    return Quote(symbol=entry.symbol, price=entry.price, timestamp=entry.fetched_at, source=entry.source)
