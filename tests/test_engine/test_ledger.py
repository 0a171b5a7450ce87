from __future__ import annotations

import random

import pytest

from copytrade_daemon.engine.ledger import PortfolioLedger
from copytrade_daemon.exceptions import CopyTradeError, ErrorCode
from copytrade_daemon.models.portfolio import Portfolio
from copytrade_daemon.models.trades import Side, Trade


def _trade(side: Side, qty: int, price: float, symbol: str = "AAPL") -> Trade:
    return Trade(trader_id=1, symbol=symbol, side=side, quantity=qty, price=price)


def test_average_cost_buy_buy_sell_sequence() -> None:
    ledger = PortfolioLedger(fill_price_source="trade")
    portfolio = Portfolio(user_id="alice", cash_balance=10_000.0)

    ledger.apply_fill(portfolio, _trade(Side.BUY, 10, 100.0), 100.0)
    assert portfolio.cash_balance == pytest.approx(9_000.0)
    assert portfolio.holdings["AAPL"].quantity == 10
    assert portfolio.holdings["AAPL"].average_price == pytest.approx(100.0)

    ledger.apply_fill(portfolio, _trade(Side.BUY, 10, 120.0), 120.0)
    assert portfolio.cash_balance == pytest.approx(7_800.0)
    assert portfolio.holdings["AAPL"].quantity == 20
    assert portfolio.holdings["AAPL"].average_price == pytest.approx(110.0)

    filled = ledger.apply_fill(portfolio, _trade(Side.SELL, 15, 130.0), 130.0)
    assert filled.profit_loss == pytest.approx(300.0)
    assert portfolio.realized_pnl == pytest.approx(300.0)
    assert portfolio.cash_balance == pytest.approx(9_750.0)
    holding = portfolio.holdings["AAPL"]
    assert holding.quantity == 5
    assert holding.average_price == pytest.approx(110.0)
    assert holding.total_cost == pytest.approx(550.0)


def test_buy_without_enough_cash_is_rejected_and_leaves_portfolio_untouched() -> None:
    ledger = PortfolioLedger(fill_price_source="trade")
    portfolio = Portfolio(user_id="bob", cash_balance=100.0)

    with pytest.raises(CopyTradeError) as exc:
        ledger.apply_fill(portfolio, _trade(Side.BUY, 10, 50.0), 50.0)

    assert exc.value.code == ErrorCode.INSUFFICIENT_FUNDS
    assert exc.value.is_rejection
    assert portfolio.cash_balance == 100.0
    assert portfolio.holdings == {}
    assert portfolio.history == []


def test_sell_more_than_held_is_rejected() -> None:
    ledger = PortfolioLedger(fill_price_source="trade")
    portfolio = Portfolio(user_id="carol", cash_balance=1_000.0)
    ledger.apply_fill(portfolio, _trade(Side.BUY, 2, 100.0), 100.0)

    with pytest.raises(CopyTradeError) as exc:
        ledger.apply_fill(portfolio, _trade(Side.SELL, 3, 100.0), 100.0)

    assert exc.value.code == ErrorCode.INSUFFICIENT_SHARES
    assert exc.value.details["held"] == 2
    assert portfolio.holdings["AAPL"].quantity == 2
    assert portfolio.cash_balance == pytest.approx(800.0)


def test_selling_everything_removes_the_holding() -> None:
    ledger = PortfolioLedger(fill_price_source="trade")
    portfolio = Portfolio(user_id="dave", cash_balance=1_000.0)
    ledger.apply_fill(portfolio, _trade(Side.BUY, 4, 50.0), 50.0)

    filled = ledger.apply_fill(portfolio, _trade(Side.SELL, 4, 40.0), 40.0)

    assert "AAPL" not in portfolio.holdings
    assert filled.profit_loss == pytest.approx(-40.0)
    assert portfolio.cash_balance == pytest.approx(960.0)


def test_history_is_newest_first_and_capped() -> None:
    ledger = PortfolioLedger(fill_price_source="trade", history_limit=2)
    portfolio = Portfolio(user_id="erin", cash_balance=10_000.0)

    for symbol in ("AAPL", "MSFT", "TSLA"):
        ledger.apply_fill(portfolio, _trade(Side.BUY, 1, 10.0, symbol=symbol), 10.0)

    assert [t.symbol for t in portfolio.history] == ["TSLA", "MSFT"]


def test_allocations_sum_against_total_value() -> None:
    ledger = PortfolioLedger(fill_price_source="trade")
    portfolio = Portfolio(user_id="frank", cash_balance=1_000.0)
    ledger.apply_fill(portfolio, _trade(Side.BUY, 5, 100.0, symbol="AAPL"), 100.0)
    ledger.apply_fill(portfolio, _trade(Side.BUY, 5, 50.0, symbol="KO"), 50.0)

    assert portfolio.total_value == pytest.approx(1_000.0)
    assert portfolio.holdings["AAPL"].allocation_percent == pytest.approx(50.0)
    assert portfolio.holdings["KO"].allocation_percent == pytest.approx(25.0)


@pytest.mark.parametrize("seed", range(25))
def test_allocations_never_exceed_total_value_as_cash_runs_out(seed: int) -> None:
    rng = random.Random(seed)
    ledger = PortfolioLedger(fill_price_source="trade")
    symbols = rng.sample(["AAPL", "MSFT", "KO", "TSLA", "NVDA", "AMZN"], rng.randint(2, 5))

    for round_no in range(40):
        portfolio = Portfolio(user_id=f"u{seed}-{round_no}", cash_balance=rng.uniform(1_000.0, 50_000.0))
        for symbol in symbols:
            price = round(rng.uniform(1.0, 900.0), rng.choice([0, 2, 4]))
            qty = int(portfolio.cash_balance // price)
            while qty > 0 and qty * price > portfolio.cash_balance:
                qty -= 1
            if qty <= 0:
                continue
            if symbol != symbols[-1]:
                qty = max(1, qty // rng.randint(1, len(symbols)))
            ledger.apply_fill(portfolio, _trade(Side.BUY, qty, price, symbol=symbol), price)
            total = sum(h.allocation_percent for h in portfolio.holdings.values())
            assert total <= 100.0
            assert all(h.allocation_percent >= 0.0 for h in portfolio.holdings.values())


@pytest.mark.parametrize("seed", [3, 17, 42])
def test_average_price_is_quantity_weighted_over_many_buys(seed: int) -> None:
    rng = random.Random(seed)
    ledger = PortfolioLedger(fill_price_source="trade")
    portfolio = Portfolio(user_id="grace", cash_balance=10_000_000.0)
    fills: list[tuple[int, float]] = []

    for _ in range(12):
        qty = rng.randint(1, 200)
        price = round(rng.uniform(10.0, 500.0), 2)
        fills.append((qty, price))
        ledger.apply_fill(portfolio, _trade(Side.BUY, qty, price), price)

        held = sum(q for q, _ in fills)
        weighted = sum(q * p for q, p in fills) / held
        holding = portfolio.holdings["AAPL"]
        assert holding.quantity == held
        assert holding.average_price == pytest.approx(weighted)
        assert holding.total_cost == pytest.approx(weighted * held)

    spent = sum(q * p for q, p in fills)
    assert portfolio.cash_balance == pytest.approx(10_000_000.0 - spent)


def test_non_positive_fill_price_is_invalid() -> None:
    ledger = PortfolioLedger(fill_price_source="trade")
    portfolio = Portfolio(user_id="gina", cash_balance=1_000.0)

    with pytest.raises(CopyTradeError) as exc:
        ledger.apply_fill(portfolio, _trade(Side.BUY, 1, 10.0), 0.0)

    assert exc.value.code == ErrorCode.INVALID_TRADE
    assert portfolio.cash_balance == 1_000.0


def test_market_pricing_requires_quote_cache() -> None:
    with pytest.raises(ValueError):
        PortfolioLedger(fill_price_source="market")
    with pytest.raises(ValueError):
        PortfolioLedger(fill_price_source="limit")


class _FixedQuotes:
    def __init__(self, price: float | Exception) -> None:
        self.price = price
        self.calls: list[str] = []

    async def get_price(self, symbol: str) -> float:
        self.calls.append(symbol)
        if isinstance(self.price, Exception):
            raise self.price
        return self.price


@pytest.mark.asyncio
async def test_execute_trade_fills_at_market_price() -> None:
    quotes = _FixedQuotes(105.0)
    ledger = PortfolioLedger(quotes, fill_price_source="market")  # type: ignore[arg-type]
    portfolio = Portfolio(user_id="hank", cash_balance=1_000.0)

    filled = await ledger.execute_trade(portfolio, _trade(Side.BUY, 2, 100.0))

    assert quotes.calls == ["AAPL"]
    assert filled.price == pytest.approx(105.0)
    assert portfolio.cash_balance == pytest.approx(790.0)


@pytest.mark.asyncio
async def test_execute_trade_falls_back_to_trade_price_when_lookup_fails() -> None:
    ledger = PortfolioLedger(_FixedQuotes(RuntimeError("down")), fill_price_source="market")  # type: ignore[arg-type]
    portfolio = Portfolio(user_id="ivy", cash_balance=1_000.0)

    filled = await ledger.execute_trade(portfolio, _trade(Side.BUY, 2, 100.0))

    assert filled.price == pytest.approx(100.0)
    assert portfolio.cash_balance == pytest.approx(800.0)


@pytest.mark.asyncio
async def test_refresh_prices_re_marks_holdings() -> None:
    quotes = _FixedQuotes(150.0)
    ledger = PortfolioLedger(quotes, fill_price_source="market")  # type: ignore[arg-type]
    portfolio = Portfolio(user_id="jack", cash_balance=1_000.0)
    ledger.apply_fill(portfolio, _trade(Side.BUY, 2, 100.0), 100.0)

    await ledger.refresh_prices(portfolio)

    holding = portfolio.holdings["AAPL"]
    assert holding.current_price == pytest.approx(150.0)
    assert holding.unrealized_pnl == pytest.approx(100.0)
    assert portfolio.unrealized_pnl == pytest.approx(100.0)
