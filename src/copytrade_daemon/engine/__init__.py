"""Copy-trade portfolio accounting engine."""

from copytrade_daemon.engine.dispatcher import CopyResult, TradeDispatcher
from copytrade_daemon.engine.ledger import PortfolioLedger
from copytrade_daemon.engine.policy import CopyPolicyEvaluator
from copytrade_daemon.engine.quote_cache import QuoteCache
from copytrade_daemon.engine.registry import FollowRegistry, PortfolioStore

__all__ = [
    "CopyPolicyEvaluator",
    "CopyResult",
    "FollowRegistry",
    "PortfolioLedger",
    "PortfolioStore",
    "QuoteCache",
    "TradeDispatcher",
]
