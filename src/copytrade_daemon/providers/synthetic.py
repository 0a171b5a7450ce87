"""Offline quote provider producing jittered prices around a base table."""

from __future__ import annotations

import random
import zlib

from copytrade_daemon.data.traders import BASE_PRICES
from copytrade_daemon.models.market import Quote
from copytrade_daemon.providers.base import QuoteProvider


def base_price(symbol: str) -> float:
    sym = symbol.upper().strip()
    known = BASE_PRICES.get(sym)
    if known is not None:
        return known
    # Unknown symbols get a stable base in [100, 500).
    return 100.0 + (zlib.crc32(sym.encode("utf-8")) % 40_000) / 100.0


class SyntheticQuoteProvider(QuoteProvider):
    name = "synthetic"

    def __init__(self, *, jitter_pct: float = 5.0, rng: random.Random | None = None) -> None:
        if jitter_pct < 0:
            raise ValueError("jitter_pct must be >= 0")
        self._jitter = jitter_pct / 100.0
        self._rng = rng or random.Random()

    def price_for(self, symbol: str) -> float:
        variation = self._rng.uniform(-self._jitter, self._jitter)
        return round(base_price(symbol) * (1 + variation), 2)

    async def quote(self, symbol: str) -> Quote:
        sym = symbol.upper().strip()
        base = base_price(sym)
        price = self.price_for(sym)
        change = round(price - base, 2)
        return Quote(
            symbol=sym,
            price=price,
            source=self.name,
            change=change,
            change_percent=round(change / base * 100.0, 4),
            volume=float(self._rng.randint(0, 10_000_000)),
        )
