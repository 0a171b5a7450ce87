"""Offline copy-trading simulation against an in-process engine."""

from __future__ import annotations

import random
from datetime import UTC, date, datetime, time, timedelta

from pydantic import BaseModel, Field

from copytrade_daemon.data.traders import get_trader
from copytrade_daemon.daemon.feed import generate_strategy_trade
from copytrade_daemon.engine.dispatcher import TradeDispatcher
from copytrade_daemon.engine.ledger import PortfolioLedger
from copytrade_daemon.engine.registry import FollowRegistry, PortfolioStore
from copytrade_daemon.exceptions import CopyTradeError, ErrorCode
from copytrade_daemon.models.copy import CopySettings, PositionSizeType
from copytrade_daemon.models.trades import Side
from copytrade_daemon.providers.synthetic import SyntheticQuoteProvider

SIMULATION_USER_ID = "simulation"


def default_simulation_settings() -> CopySettings:
    return CopySettings(
        enabled=True,
        position_size_type=PositionSizeType.PERCENTAGE,
        position_size=10.0,
        max_position_size=10_000.0,
        stop_loss_percent=5.0,
        take_profit_percent=10.0,
        max_daily_loss=5_000.0,
        max_drawdown_percent=20.0,
    )


class SimulationReport(BaseModel):
    trader_id: int
    trader_name: str
    days: int
    trading_days: int
    starting_balance: float
    final_cash: float
    final_total_value: float
    upstream_trades: int
    copied_trades: int
    skipped_trades: int
    rejected_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    realized_pnl: float
    unrealized_pnl: float
    largest_win: float
    largest_loss: float
    holdings: list[dict[str, object]] = Field(default_factory=list)


async def simulate_copy_portfolio(
    trader_id: int,
    *,
    days: int = 30,
    trades_per_day: int = 5,
    initial_balance: float = 100_000.0,
    settings: CopySettings | None = None,
    seed: int | None = None,
    start: date | None = None,
) -> SimulationReport:
    """Copy one trader for ``days`` calendar days, skipping weekends.

    Each trading day produces 1..``trades_per_day`` strategy-biased trades at
    synthetic prices; every trade is fanned out through the regular dispatcher
    and fills at the trader's price.
    """
    trader = get_trader(trader_id)
    if trader is None:
        raise CopyTradeError(
            ErrorCode.UNKNOWN_TRADER,
            f"unknown trader {trader_id}",
            details={"trader_id": trader_id},
            suggestion="Run `copytrade traders list` to see available traders.",
        )
    if days < 1 or trades_per_day < 1:
        raise CopyTradeError(ErrorCode.INVALID_ARGS, "days and trades_per_day must be >= 1")

    rng = random.Random(seed)
    prices = SyntheticQuoteProvider(rng=rng)
    store = PortfolioStore(initial_balance=initial_balance)
    registry = FollowRegistry(store)
    dispatcher = TradeDispatcher(store=store, ledger=PortfolioLedger(fill_price_source="trade"))

    portfolio = store.create(SIMULATION_USER_ID)
    registry.update_copy_settings(SIMULATION_USER_ID, trader_id, settings or default_simulation_settings())

    first_day = start or (datetime.now(UTC).date() - timedelta(days=days))
    trading_days = upstream = copied = skipped = rejected = wins = losses = 0
    largest_win = largest_loss = 0.0

    for offset in range(days):
        day = first_day + timedelta(days=offset)
        if day.weekday() >= 5:
            continue
        trading_days += 1
        stamp = datetime.combine(day, time(hour=14, minute=30), tzinfo=UTC)

        for _ in range(rng.randint(1, trades_per_day)):
            symbol = rng.choice(trader.preferred_symbols)
            trade = generate_strategy_trade(trader, symbol, prices.price_for(symbol), rng)
            if trade is None:
                continue
            upstream += 1
            results = await dispatcher.handle_trade(trade.model_copy(update={"timestamp": stamp}))
            for result in results:
                if result.error is not None:
                    rejected += 1
                    continue
                if result.trade is None:
                    skipped += 1
                    continue
                copied += 1
                pnl = result.trade.profit_loss or 0.0
                if result.trade.side == Side.SELL and pnl > 0:
                    wins += 1
                    largest_win = max(largest_win, pnl)
                elif result.trade.side == Side.SELL and pnl < 0:
                    losses += 1
                    largest_loss = min(largest_loss, pnl)

    closed = wins + losses
    snapshot = portfolio.snapshot(history_limit=0)
    return SimulationReport(
        trader_id=trader.id,
        trader_name=trader.name,
        days=days,
        trading_days=trading_days,
        starting_balance=initial_balance,
        final_cash=round(portfolio.cash_balance, 2),
        final_total_value=round(portfolio.total_value, 2),
        upstream_trades=upstream,
        copied_trades=copied,
        skipped_trades=skipped,
        rejected_trades=rejected,
        winning_trades=wins,
        losing_trades=losses,
        win_rate=round(wins / closed * 100.0, 1) if closed else 0.0,
        realized_pnl=round(portfolio.realized_pnl, 2),
        unrealized_pnl=round(portfolio.unrealized_pnl, 2),
        largest_win=round(largest_win, 2),
        largest_loss=round(largest_loss, 2),
        holdings=list(snapshot["holdings"]),  # type: ignore[arg-type]
    )
