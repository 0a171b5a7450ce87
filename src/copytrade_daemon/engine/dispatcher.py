"""Fan-out of upstream trades to every portfolio."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from copytrade_daemon.audit.logger import AuditLogger
from copytrade_daemon.engine.ledger import PortfolioLedger
from copytrade_daemon.engine.policy import CopyPolicyEvaluator
from copytrade_daemon.engine.registry import PortfolioStore
from copytrade_daemon.exceptions import CopyTradeError, ErrorCode
from copytrade_daemon.models.copy import CopyDecision
from copytrade_daemon.models.events import Event, EventTopic
from copytrade_daemon.models.portfolio import Portfolio
from copytrade_daemon.models.trades import Trade, TradeSource

logger = logging.getLogger(__name__)

EVENT_HISTORY_LIMIT = 20


class CopyResult(BaseModel):
    user_id: str
    decision: CopyDecision
    trade: Trade | None = None
    error: dict[str, Any] | None = None

    @property
    def filled(self) -> bool:
        return self.trade is not None


class TradeDispatcher:
    def __init__(
        self,
        *,
        store: PortfolioStore,
        ledger: PortfolioLedger,
        evaluator: CopyPolicyEvaluator | None = None,
        audit: AuditLogger | None = None,
        event_cb: Callable[[Event], Awaitable[None]] | None = None,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._evaluator = evaluator or CopyPolicyEvaluator()
        self._audit = audit
        self._event_cb = event_cb

    async def handle_trade(self, event: Trade | dict[str, Any]) -> list[CopyResult]:
        """Evaluate one upstream trade against every portfolio concurrently.

        Malformed events are logged and skipped. Each portfolio is processed
        under its own lock; a rejection or unexpected failure for one user is
        captured in that user's result and never reaches the others.
        """
        if isinstance(event, Trade):
            trade = event
        else:
            try:
                trade = Trade.from_event(event)
            except CopyTradeError as exc:
                logger.warning("skipping malformed trade event: %s details=%s", exc.message, exc.details)
                return []

        portfolios = self._store.all()
        if not portfolios:
            return []
        return list(await asyncio.gather(*(self._copy_for(p, trade) for p in portfolios)))

    async def _copy_for(self, portfolio: Portfolio, trade: Trade) -> CopyResult:
        user_id = portfolio.user_id
        decision = CopyDecision()
        copy_trade: Trade | None = None
        try:
            async with self._store.lock(user_id):
                decision = self._evaluator.evaluate(portfolio, trade)
                if not decision.should_copy:
                    logger.debug(
                        "copy skipped user_id=%s trade_id=%s reason=%s",
                        user_id,
                        trade.id,
                        decision.reason.value if decision.reason else None,
                    )
                    return CopyResult(user_id=user_id, decision=decision)

                copy_trade = Trade(
                    trader_id=trade.trader_id,
                    symbol=trade.symbol,
                    side=trade.side,
                    quantity=decision.quantity,
                    price=trade.price,
                    source=TradeSource.COPY,
                    copied_from=trade.id,
                )
                filled = await self._ledger.execute_trade(portfolio, copy_trade)
                snapshot = portfolio.snapshot(history_limit=EVENT_HISTORY_LIMIT)
        except CopyTradeError as exc:
            logger.info("copy rejected user_id=%s trade_id=%s code=%s", user_id, trade.id, exc.code.value)
            if copy_trade is not None:
                await self._journal_rejection(user_id, copy_trade, exc)
            return CopyResult(user_id=user_id, decision=decision, error=exc.to_error_payload())
        except Exception as exc:
            logger.exception("copy failed user_id=%s trade_id=%s", user_id, trade.id)
            error = CopyTradeError(ErrorCode.INTERNAL_ERROR, str(exc) or type(exc).__name__)
            return CopyResult(user_id=user_id, decision=decision, error=error.to_error_payload())

        await self._journal_fill(user_id, filled)
        await self._emit(
            Event(topic=EventTopic.COPY_TRADES, payload={"user_id": user_id, "trade": filled.model_dump(mode="json")})
        )
        await self._emit(Event(topic=EventTopic.PORTFOLIO, payload={"user_id": user_id, "portfolio": snapshot}))
        return CopyResult(user_id=user_id, decision=decision, trade=filled)

    async def execute_manual_trade(self, user_id: str, trade: Trade) -> Trade:
        portfolio = self._store.require(user_id)
        manual = trade if trade.source == TradeSource.MANUAL else trade.model_copy(update={"source": TradeSource.MANUAL})
        async with self._store.lock(user_id):
            try:
                filled = await self._ledger.execute_trade(portfolio, manual)
            except CopyTradeError as exc:
                await self._journal_rejection(user_id, manual, exc)
                raise
            snapshot = portfolio.snapshot(history_limit=EVENT_HISTORY_LIMIT)

        await self._journal_fill(user_id, filled)
        await self._emit(Event(topic=EventTopic.PORTFOLIO, payload={"user_id": user_id, "portfolio": snapshot}))
        return filled

    async def refresh_portfolio(self, user_id: str) -> Portfolio:
        portfolio = self._store.require(user_id)
        async with self._store.lock(user_id):
            await self._ledger.refresh_prices(portfolio)
            snapshot = portfolio.snapshot(history_limit=EVENT_HISTORY_LIMIT)
        await self._emit(Event(topic=EventTopic.PORTFOLIO, payload={"user_id": user_id, "portfolio": snapshot}))
        return portfolio

    async def _journal_fill(self, user_id: str, trade: Trade) -> None:
        if self._audit is None:
            return
        try:
            await self._audit.log_fill(user_id, trade)
        except Exception:
            logger.exception("audit fill write failed user_id=%s trade_id=%s", user_id, trade.id)

    async def _journal_rejection(self, user_id: str, trade: Trade, error: CopyTradeError) -> None:
        if self._audit is None or not error.is_rejection:
            return
        try:
            await self._audit.log_rejection(user_id, trade, error)
        except Exception:
            logger.exception("audit rejection write failed user_id=%s trade_id=%s", user_id, trade.id)

    async def _emit(self, event: Event) -> None:
        if self._event_cb:
            await self._event_cb(event)
