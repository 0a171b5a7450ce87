"""Typed domain models."""

from copytrade_daemon.models.copy import CopyDecision, CopySettings, PositionSizeType, SkipReason
from copytrade_daemon.models.events import Event, EventTopic
from copytrade_daemon.models.market import Quote, QuoteCacheEntry
from copytrade_daemon.models.portfolio import Holding, Portfolio, PortfolioSummary
from copytrade_daemon.models.traders import RiskLevel, Strategy, Trader
from copytrade_daemon.models.trades import Side, Trade, TradeSource

__all__ = [
    "CopyDecision",
    "CopySettings",
    "Event",
    "EventTopic",
    "Holding",
    "Portfolio",
    "PortfolioSummary",
    "PositionSizeType",
    "Quote",
    "QuoteCacheEntry",
    "RiskLevel",
    "Side",
    "SkipReason",
    "Strategy",
    "Trade",
    "TradeSource",
    "Trader",
]
