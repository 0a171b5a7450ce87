"""Quote provider abstraction for market-data sources."""

from __future__ import annotations

from abc import ABC, abstractmethod

from copytrade_daemon.models.market import Quote


class QuoteProvider(ABC):
    name: str = "unknown"

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        return None

    @abstractmethod
    async def quote(self, symbol: str) -> Quote:
        """Return a fresh quote or raise when the symbol cannot be priced."""
        raise NotImplementedError

    async def quotes(self, symbols: list[str]) -> list[Quote]:
        return [await self.quote(symbol) for symbol in symbols]
