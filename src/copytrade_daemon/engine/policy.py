"""Copy participation and position-sizing rules."""

from __future__ import annotations

import math

from copytrade_daemon.models.copy import CopyDecision, CopySettings, PositionSizeType, SkipReason
from copytrade_daemon.models.portfolio import Portfolio
from copytrade_daemon.models.trades import Trade


class CopyPolicyEvaluator:
    """Decides whether a portfolio copies a trade and for how many shares.

    The copy mirrors the upstream symbol and side; only the size changes.
    Sizing uses the upstream trade price, not a fresh quote.
    """

    def evaluate(self, portfolio: Portfolio, trade: Trade) -> CopyDecision:
        if trade.trader_id not in portfolio.followed_trader_ids:
            return CopyDecision.skip(SkipReason.NOT_FOLLOWING)

        settings = portfolio.copy_settings.get(trade.trader_id)
        if settings is None:
            return CopyDecision.skip(SkipReason.NO_SETTINGS)
        if not settings.enabled:
            return CopyDecision.skip(SkipReason.DISABLED)

        errors = settings.configuration_errors()
        if errors:
            return CopyDecision.skip(SkipReason.INVALID_CONFIGURATION, errors="; ".join(errors))
        if trade.price <= 0:
            return CopyDecision.skip(SkipReason.INVALID_TRADE, price=str(trade.price))

        quantity = self.quantity_for(settings, price=trade.price, cash_balance=portfolio.cash_balance)
        if quantity <= 0:
            return CopyDecision.skip(SkipReason.ZERO_QUANTITY, price=str(trade.price))
        return CopyDecision.copy_with(quantity)

    @staticmethod
    def quantity_for(settings: CopySettings, *, price: float, cash_balance: float) -> int:
        if settings.position_size_type == PositionSizeType.PERCENTAGE:
            budget = cash_balance * settings.position_size / 100.0
        else:
            budget = settings.position_size
        quantity = math.floor(budget / price)

        if quantity * price > settings.max_position_size:
            quantity = math.floor(settings.max_position_size / price)
        return max(quantity, 0)
