"""Portfolio and holding domain models."""

from __future__ import annotations

import math
import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, Field, computed_field

from copytrade_daemon.models.copy import CopySettings
from copytrade_daemon.models.trades import Trade


class Holding(BaseModel):
    symbol: str
    quantity: int
    average_price: float
    current_price: float
    total_cost: float
    allocation_percent: float = 0.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def current_value(self) -> float:
        return self.quantity * self.current_price

    @computed_field  # type: ignore[prop-decorator]
    @property
    def unrealized_pnl(self) -> float:
        return self.current_value - self.total_cost

    def mark(self, price: float) -> None:
        self.current_price = price


class Portfolio(BaseModel):
    user_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    cash_balance: float = 0.0
    holdings: dict[str, Holding] = Field(default_factory=dict)
    history: list[Trade] = Field(default_factory=list)
    realized_pnl: float = 0.0
    followed_trader_ids: set[int] = Field(default_factory=set)
    copy_settings: dict[int, CopySettings] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def holdings_value(self) -> float:
        return sum(h.current_value for h in self.holdings.values())

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_value(self) -> float:
        return self.cash_balance + self.holdings_value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def unrealized_pnl(self) -> float:
        return sum(h.unrealized_pnl for h in self.holdings.values())

    def recompute_allocations(self) -> None:
        total = self.total_value
        if total <= 0:
            for holding in self.holdings.values():
                holding.allocation_percent = 0.0
            return

        shares = {symbol: h.current_value / total * 100.0 for symbol, h in self.holdings.items()}
        # Per-holding rounding can push the sum past 100 when cash is near zero.
        excess = sum(shares.values()) - 100.0
        while excess > 0:
            largest = max(shares, key=shares.__getitem__)
            shares[largest] = max(0.0, math.nextafter(shares[largest] - excess, 0.0))
            excess = sum(shares.values()) - 100.0
        for symbol, holding in self.holdings.items():
            holding.allocation_percent = shares[symbol]

    def snapshot(self, *, history_limit: int | None = None) -> dict[str, object]:
        payload = self.model_dump(mode="json")
        payload["holdings"] = sorted(payload["holdings"].values(), key=lambda h: h["symbol"])
        payload["followed_trader_ids"] = sorted(self.followed_trader_ids)
        if history_limit is not None:
            payload["history"] = payload["history"][:history_limit]
        return payload


class PortfolioSummary(BaseModel):
    user_id: str
    cash_balance: float
    holdings_value: float
    total_value: float
    realized_pnl: float
    unrealized_pnl: float
    positions: int
    followed_trader_ids: list[int]
    copying_trader_ids: list[int]

    @classmethod
    def from_portfolio(cls, portfolio: Portfolio) -> "PortfolioSummary":
        return cls(
            user_id=portfolio.user_id,
            cash_balance=portfolio.cash_balance,
            holdings_value=portfolio.holdings_value,
            total_value=portfolio.total_value,
            realized_pnl=portfolio.realized_pnl,
            unrealized_pnl=portfolio.unrealized_pnl,
            positions=len(portfolio.holdings),
            followed_trader_ids=sorted(portfolio.followed_trader_ids),
            copying_trader_ids=sorted(tid for tid, s in portfolio.copy_settings.items() if s.enabled),
        )
