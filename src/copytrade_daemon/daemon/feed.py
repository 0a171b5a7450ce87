"""Mock upstream trade generator and market-data broadcaster."""

from __future__ import annotations

import asyncio
import logging
import math
import random
from collections import deque
from typing import Any, Awaitable, Callable, Iterable

from copytrade_daemon.data.traders import TRADERS, all_symbols
from copytrade_daemon.engine.quote_cache import QuoteCache
from copytrade_daemon.models.market import Quote
from copytrade_daemon.models.traders import Strategy, Trader
from copytrade_daemon.models.trades import Side, Trade

logger = logging.getLogger(__name__)

RECENT_TRADES_PER_TRADER = 20
MARKET_BATCH_SIZE = 5


def buy_probability(strategy: Strategy, rng: random.Random) -> float:
    if strategy == Strategy.VALUE:
        return 0.7
    if strategy == Strategy.GROWTH:
        return 0.8
    if strategy == Strategy.MOMENTUM:
        return 0.8 if rng.random() > 0.5 else 0.2
    if strategy == Strategy.MEME:
        return rng.random()
    if strategy == Strategy.SOCIAL:
        return 0.65 if rng.random() > 0.3 else 0.35
    if strategy == Strategy.ETF:
        return 0.9
    return 0.5


def generate_strategy_trade(trader: Trader, symbol: str, price: float, rng: random.Random) -> Trade | None:
    """Build one trade in the trader's style for ``symbol`` at ``price``.

    Returns ``None`` when the trader's dollar size buys less than one share.
    """
    side = Side.BUY if rng.random() < buy_probability(trader.strategy, rng) else Side.SELL
    dollars = math.floor(trader.avg_size * rng.uniform(0.75, 1.25))
    quantity = math.floor(dollars / price) if price > 0 else 0
    if quantity <= 0:
        return None
    return Trade(trader_id=trader.id, symbol=symbol, side=side, quantity=quantity, price=round(price, 2))


class MockTradeFeed:
    """Schedules strategy-biased trades per trader and periodic quote broadcasts.

    Intervals follow each trader's trades-per-hour frequency with ±20%
    randomness, divided by ``speedup``. Generated trades are handed to
    ``on_trade``; the feed never touches portfolios itself.
    """

    def __init__(
        self,
        *,
        quotes: QuoteCache,
        on_trade: Callable[[Trade], Awaitable[Any]],
        on_market: Callable[[Quote], Awaitable[None]] | None = None,
        traders: Iterable[Trader] = TRADERS,
        speedup: float = 1.0,
        min_interval_seconds: float = 1.0,
        market_interval_seconds: float = 120.0,
        rng: random.Random | None = None,
    ) -> None:
        if speedup <= 0:
            raise ValueError("speedup must be > 0")
        self._quotes = quotes
        self._on_trade = on_trade
        self._on_market = on_market
        self._traders = list(traders)
        self._speedup = speedup
        self._min_interval = max(0.0, min_interval_seconds)
        self._market_interval = market_interval_seconds
        self._rng = rng or random.Random()
        self._recent: dict[int, deque[Trade]] = {
            trader.id: deque(maxlen=RECENT_TRADES_PER_TRADER) for trader in self._traders
        }
        self._tasks: list[asyncio.Task[None]] = []
        self._trades_emitted = 0

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    @property
    def trades_emitted(self) -> int:
        return self._trades_emitted

    def recent_trades(self, trader_id: int, limit: int = 5) -> list[Trade]:
        return list(self._recent.get(trader_id, ()))[:limit]

    def interval_for(self, trader: Trader) -> float:
        base = 3600.0 / trader.trade_frequency
        jittered = base * self._rng.uniform(0.8, 1.2) / self._speedup
        return max(self._min_interval, jittered)

    async def next_trade(self, trader: Trader) -> Trade | None:
        symbol = self._rng.choice(trader.preferred_symbols)
        price = await self._quotes.get_price(symbol)
        return generate_strategy_trade(trader, symbol, price, self._rng)

    async def emit_trade(self, trader: Trader) -> Trade | None:
        trade = await self.next_trade(trader)
        if trade is None:
            logger.debug("trader_id=%s produced no trade this tick", trader.id)
            return None
        self._recent.setdefault(trader.id, deque(maxlen=RECENT_TRADES_PER_TRADER)).appendleft(trade)
        self._trades_emitted += 1
        await self._on_trade(trade)
        return trade

    async def broadcast_market(self, symbols: list[str] | None = None) -> list[Quote]:
        targets = symbols or all_symbols()
        quotes: list[Quote] = []
        for start in range(0, len(targets), MARKET_BATCH_SIZE):
            batch = targets[start : start + MARKET_BATCH_SIZE]
            for symbol in batch:
                quote = await self._quotes.quote(symbol)
                quotes.append(quote)
                if self._on_market:
                    await self._on_market(quote)
        return quotes

    def start(self) -> None:
        if self.running:
            return
        self._tasks = [asyncio.create_task(self._trader_loop(trader)) for trader in self._traders]
        if self._market_interval > 0:
            self._tasks.append(asyncio.create_task(self._market_loop()))
        logger.info("mock trade feed started traders=%d speedup=%.2f", len(self._traders), self._speedup)

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _trader_loop(self, trader: Trader) -> None:
        while True:
            await asyncio.sleep(self.interval_for(trader))
            try:
                await self.emit_trade(trader)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("trade generation failed trader_id=%s", trader.id)

    async def _market_loop(self) -> None:
        while True:
            try:
                await self.broadcast_market()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("market broadcast failed")
            await asyncio.sleep(self._market_interval / self._speedup)
