"""In-memory portfolio store and follow/copy-settings registry."""

from __future__ import annotations

import asyncio
import logging

from copytrade_daemon.exceptions import CopyTradeError, ErrorCode
from copytrade_daemon.models.copy import CopySettings
from copytrade_daemon.models.portfolio import Portfolio

logger = logging.getLogger(__name__)


class PortfolioStore:
    """Owns every live portfolio plus one write lock per portfolio."""

    def __init__(self, *, initial_balance: float = 100_000.0) -> None:
        self._initial_balance = initial_balance
        self._portfolios: dict[str, Portfolio] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._portfolios)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._portfolios

    def create(self, user_id: str | None = None, initial_balance: float | None = None) -> Portfolio:
        balance = self._initial_balance if initial_balance is None else float(initial_balance)
        if balance < 0:
            raise CopyTradeError(
                ErrorCode.INVALID_ARGS,
                "initial balance must be >= 0",
                details={"initial_balance": balance},
            )
        if user_id is not None and user_id in self._portfolios:
            return self._portfolios[user_id]

        portfolio = Portfolio(cash_balance=balance) if user_id is None else Portfolio(user_id=user_id, cash_balance=balance)
        self._portfolios[portfolio.user_id] = portfolio
        self._locks[portfolio.user_id] = asyncio.Lock()
        logger.info("portfolio created user_id=%s cash=%.2f", portfolio.user_id, balance)
        return portfolio

    def get(self, user_id: str) -> Portfolio | None:
        return self._portfolios.get(user_id)

    def require(self, user_id: str) -> Portfolio:
        portfolio = self._portfolios.get(user_id)
        if portfolio is None:
            raise CopyTradeError(
                ErrorCode.UNKNOWN_USER,
                f"unknown user '{user_id}'",
                details={"user_id": user_id},
                suggestion="Start a session first: copytrade session start",
            )
        return portfolio

    def all(self) -> list[Portfolio]:
        return list(self._portfolios.values())

    def remove(self, user_id: str) -> bool:
        removed = self._portfolios.pop(user_id, None)
        self._locks.pop(user_id, None)
        if removed is not None:
            logger.info("portfolio removed user_id=%s", user_id)
        return removed is not None

    def lock(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock


class FollowRegistry:
    """Follow relationships and per-trader copy settings.

    Unknown users are a no-op returning ``False``; nothing here raises for a
    missing portfolio.
    """

    def __init__(self, store: PortfolioStore) -> None:
        self._store = store

    def follow(self, user_id: str, trader_id: int) -> bool:
        portfolio = self._lookup(user_id, "follow")
        if portfolio is None or trader_id in portfolio.followed_trader_ids:
            return False
        portfolio.followed_trader_ids.add(trader_id)
        return True

    def unfollow(self, user_id: str, trader_id: int) -> bool:
        portfolio = self._lookup(user_id, "unfollow")
        if portfolio is None:
            return False
        portfolio.followed_trader_ids.discard(trader_id)
        settings = portfolio.copy_settings.get(trader_id)
        if settings is not None and settings.enabled:
            portfolio.copy_settings[trader_id] = settings.model_copy(update={"enabled": False})
        return True

    def update_copy_settings(self, user_id: str, trader_id: int, settings: CopySettings) -> bool:
        portfolio = self._lookup(user_id, "update_copy_settings")
        if portfolio is None:
            return False
        portfolio.copy_settings[trader_id] = settings.model_copy()
        portfolio.followed_trader_ids.add(trader_id)
        return True

    def stop_copying(self, user_id: str, trader_id: int) -> bool:
        portfolio = self._lookup(user_id, "stop_copying")
        if portfolio is None:
            return False
        settings = portfolio.copy_settings.get(trader_id)
        if settings is None or not settings.enabled:
            return False
        portfolio.copy_settings[trader_id] = settings.model_copy(update={"enabled": False})
        return True

    def get_copy_settings(self, user_id: str, trader_id: int) -> CopySettings | None:
        portfolio = self._store.get(user_id)
        if portfolio is None:
            return None
        return portfolio.copy_settings.get(trader_id)

    def is_following(self, user_id: str, trader_id: int) -> bool:
        portfolio = self._store.get(user_id)
        return portfolio is not None and trader_id in portfolio.followed_trader_ids

    def _lookup(self, user_id: str, action: str) -> Portfolio | None:
        portfolio = self._store.get(user_id)
        if portfolio is None:
            logger.warning("%s ignored for unknown user_id=%s", action, user_id)
        return portfolio
