from __future__ import annotations

import asyncio
import random
from datetime import UTC, datetime, timedelta

import pytest

from copytrade_daemon.engine.quote_cache import QuoteCache
from copytrade_daemon.models.market import Quote
from copytrade_daemon.providers.base import QuoteProvider
from copytrade_daemon.providers.synthetic import SyntheticQuoteProvider, base_price


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 5, 15, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class _CountingProvider(QuoteProvider):
    name = "counting"

    def __init__(self, prices: list[float]) -> None:
        self._prices = list(prices)
        self.calls = 0

    async def quote(self, symbol: str) -> Quote:
        self.calls += 1
        price = self._prices[min(self.calls - 1, len(self._prices) - 1)]
        return Quote(symbol=symbol, price=price, source=self.name)


class _FailingProvider(QuoteProvider):
    name = "failing"

    def __init__(self, exc: Exception) -> None:
        self.exc = exc
        self.calls = 0

    async def quote(self, symbol: str) -> Quote:
        self.calls += 1
        raise self.exc


class _SlowProvider(QuoteProvider):
    name = "slow"

    async def quote(self, symbol: str) -> Quote:
        await asyncio.sleep(1)
        return Quote(symbol=symbol, price=1.0, source=self.name)


@pytest.mark.asyncio
async def test_fresh_entry_is_served_from_cache_until_ttl_expires() -> None:
    clock = _Clock()
    provider = _CountingProvider([101.0, 202.0])
    cache = QuoteCache(provider, ttl_seconds=60, clock=clock)

    assert await cache.get_price("aapl") == 101.0
    clock.advance(59)
    assert await cache.get_price("AAPL") == 101.0
    assert provider.calls == 1

    clock.advance(1)
    assert await cache.get_price("AAPL") == 202.0
    assert provider.calls == 2


@pytest.mark.asyncio
async def test_concurrent_lookups_share_one_provider_call() -> None:
    provider = _CountingProvider([50.0])
    cache = QuoteCache(provider, ttl_seconds=60)

    prices = await asyncio.gather(*(cache.get_price("KO") for _ in range(5)))

    assert prices == [50.0] * 5
    assert provider.calls == 1


@pytest.mark.asyncio
async def test_provider_failure_returns_uncached_fallback() -> None:
    provider = _FailingProvider(RuntimeError("boom"))
    fallback = SyntheticQuoteProvider(jitter_pct=5.0, rng=random.Random(7))
    cache = QuoteCache(provider, fallback=fallback)

    quote = await cache.quote("AAPL")

    assert quote.fallback_used
    assert quote.source == "fallback"
    base = base_price("AAPL")
    assert base * 0.95 <= quote.price <= base * 1.05
    assert cache.peek("AAPL") is None

    await cache.quote("AAPL")
    assert provider.calls == 2


@pytest.mark.asyncio
async def test_non_positive_provider_price_uses_fallback() -> None:
    cache = QuoteCache(_CountingProvider([0.0]))
    quote = await cache.quote("MSFT")
    assert quote.fallback_used
    assert quote.price > 0


@pytest.mark.asyncio
async def test_provider_timeout_uses_fallback() -> None:
    cache = QuoteCache(_SlowProvider(), timeout_seconds=0.01)
    quote = await cache.quote("TSLA")
    assert quote.fallback_used


def test_prime_ignores_fallback_quotes_and_invalidate_clears() -> None:
    cache = QuoteCache(_CountingProvider([1.0]))
    cache.prime(Quote(symbol="nvda", price=900.0))
    cache.prime(Quote(symbol="AMD", price=150.0, fallback_used=True))

    assert [e.symbol for e in cache.entries()] == ["NVDA"]

    cache.invalidate("nvda")
    assert cache.entries() == []
