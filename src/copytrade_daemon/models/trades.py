"""Trade domain models and the upstream event adapter."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from copytrade_daemon.exceptions import CopyTradeError, ErrorCode


class Side(str, Enum):
    BUY = "buy"
    SELL = "sell"


class TradeSource(str, Enum):
    TRADER = "trader"
    COPY = "copy"
    MANUAL = "manual"


# Upstream generators and older clients used these names for the same fields.
_EVENT_ALIASES: dict[str, str] = {
    "ticker": "symbol",
    "size": "quantity",
    "action": "side",
    "type": "side",
    "traderId": "trader_id",
    "pnl": "profit_loss",
}


# User-originated trades have no upstream trader.
MANUAL_TRADER_ID = 0


def new_trade_id() -> str:
    return uuid.uuid4().hex


class Trade(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_trade_id)
    trader_id: int
    symbol: str
    side: Side
    quantity: int = Field(gt=0)
    price: float = Field(gt=0)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    profit_loss: float | None = None
    source: TradeSource = TradeSource.TRADER
    copied_from: str | None = None

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        symbol = value.upper().strip()
        if not symbol:
            raise ValueError("symbol must not be empty")
        return symbol

    @field_validator("side", mode="before")
    @classmethod
    def _normalize_side(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @classmethod
    def from_event(cls, raw: dict[str, Any]) -> "Trade":
        """Translate an upstream trade event into the canonical schema.

        Raises ``CopyTradeError(INVALID_TRADE)`` for malformed events so callers
        can skip them without crashing the feed.
        """
        if not isinstance(raw, dict):
            raise CopyTradeError(ErrorCode.INVALID_TRADE, "trade event must be a mapping")

        data: dict[str, Any] = {}
        for key, value in raw.items():
            canonical = _EVENT_ALIASES.get(key, key)
            if canonical in data and canonical != key:
                continue
            data[canonical] = value

        if "id" in data and data["id"] is not None:
            data["id"] = str(data["id"])
        elif "id" in data:
            data.pop("id")

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise CopyTradeError(
                ErrorCode.INVALID_TRADE,
                "malformed trade event",
                details={"validation": exc.errors(include_url=False, include_context=False)},
            ) from exc
