"""Portfolio fills with average-cost accounting."""

from __future__ import annotations

import logging

from copytrade_daemon.engine.quote_cache import QuoteCache
from copytrade_daemon.exceptions import CopyTradeError, ErrorCode
from copytrade_daemon.models.portfolio import Holding, Portfolio
from copytrade_daemon.models.trades import Side, Trade

logger = logging.getLogger(__name__)

FILL_PRICE_SOURCES = ("market", "trade")


class PortfolioLedger:
    """Applies buy/sell fills to a portfolio.

    Every rejection is raised before any field is touched, so a failed fill
    leaves cash, holdings and history exactly as they were. Callers hold the
    portfolio's lock around ``execute_trade``; ``apply_fill`` itself never
    awaits.
    """

    def __init__(
        self,
        quotes: QuoteCache | None = None,
        *,
        fill_price_source: str = "market",
        history_limit: int = 1000,
    ) -> None:
        if fill_price_source not in FILL_PRICE_SOURCES:
            raise ValueError(f"fill_price_source must be one of {', '.join(FILL_PRICE_SOURCES)}")
        if fill_price_source == "market" and quotes is None:
            raise ValueError("market fill pricing requires a quote cache")
        self._quotes = quotes
        self._fill_price_source = fill_price_source
        self._history_limit = max(1, history_limit)

    async def resolve_fill_price(self, trade: Trade) -> float:
        if self._fill_price_source == "trade" or self._quotes is None:
            return trade.price
        try:
            price = await self._quotes.get_price(trade.symbol)
        except Exception as exc:
            logger.warning("fill price lookup failed symbol=%s error=%s; using trade price", trade.symbol, exc)
            return trade.price
        if price <= 0:
            return trade.price
        return price

    async def execute_trade(self, portfolio: Portfolio, trade: Trade) -> Trade:
        fill_price = await self.resolve_fill_price(trade)
        return self.apply_fill(portfolio, trade, fill_price)

    def apply_fill(self, portfolio: Portfolio, trade: Trade, fill_price: float) -> Trade:
        if fill_price <= 0 or trade.quantity <= 0:
            raise CopyTradeError(
                ErrorCode.INVALID_TRADE,
                "fill requires a positive price and quantity",
                details={"symbol": trade.symbol, "price": fill_price, "quantity": trade.quantity},
            )

        if trade.side == Side.BUY:
            profit_loss = self._apply_buy(portfolio, trade, fill_price)
        else:
            profit_loss = self._apply_sell(portfolio, trade, fill_price)

        filled = trade.model_copy(update={"price": fill_price, "profit_loss": profit_loss})
        portfolio.recompute_allocations()
        portfolio.history.insert(0, filled)
        if len(portfolio.history) > self._history_limit:
            del portfolio.history[self._history_limit :]

        logger.info(
            "fill user_id=%s side=%s symbol=%s qty=%d price=%.2f pnl=%.2f cash=%.2f",
            portfolio.user_id,
            trade.side.value,
            trade.symbol,
            trade.quantity,
            fill_price,
            profit_loss,
            portfolio.cash_balance,
        )
        return filled

    def _apply_buy(self, portfolio: Portfolio, trade: Trade, fill_price: float) -> float:
        cost = fill_price * trade.quantity
        if portfolio.cash_balance < cost:
            raise CopyTradeError(
                ErrorCode.INSUFFICIENT_FUNDS,
                f"insufficient cash to buy {trade.quantity} {trade.symbol}",
                details={
                    "user_id": portfolio.user_id,
                    "symbol": trade.symbol,
                    "required": round(cost, 2),
                    "cash_balance": round(portfolio.cash_balance, 2),
                },
            )

        portfolio.cash_balance -= cost
        holding = portfolio.holdings.get(trade.symbol)
        if holding is None:
            portfolio.holdings[trade.symbol] = Holding(
                symbol=trade.symbol,
                quantity=trade.quantity,
                average_price=fill_price,
                current_price=fill_price,
                total_cost=cost,
            )
        else:
            holding.quantity += trade.quantity
            holding.total_cost += cost
            holding.average_price = holding.total_cost / holding.quantity
            holding.mark(fill_price)
        return 0.0

    def _apply_sell(self, portfolio: Portfolio, trade: Trade, fill_price: float) -> float:
        holding = portfolio.holdings.get(trade.symbol)
        held = holding.quantity if holding is not None else 0
        if holding is None or held < trade.quantity:
            raise CopyTradeError(
                ErrorCode.INSUFFICIENT_SHARES,
                f"insufficient shares to sell {trade.quantity} {trade.symbol}",
                details={
                    "user_id": portfolio.user_id,
                    "symbol": trade.symbol,
                    "requested": trade.quantity,
                    "held": held,
                },
            )

        realized = (fill_price - holding.average_price) * trade.quantity
        portfolio.cash_balance += fill_price * trade.quantity
        portfolio.realized_pnl += realized

        remaining = holding.quantity - trade.quantity
        if remaining == 0:
            del portfolio.holdings[trade.symbol]
        else:
            holding.quantity = remaining
            holding.total_cost = max(0.0, holding.total_cost - holding.average_price * trade.quantity)
            holding.mark(fill_price)
        return realized

    async def refresh_prices(self, portfolio: Portfolio) -> Portfolio:
        """Re-mark every holding at the current quote and recompute allocations."""
        if self._quotes is None:
            return portfolio
        for symbol in list(portfolio.holdings):
            price = await self._quotes.get_price(symbol)
            holding = portfolio.holdings.get(symbol)
            if holding is not None and price > 0:
                holding.mark(price)
        portfolio.recompute_allocations()
        return portfolio
