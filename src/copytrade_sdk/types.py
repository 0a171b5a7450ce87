"""Shared Python SDK type aliases and discoverable constants."""

from __future__ import annotations

from typing import Literal, TypeAlias

TRADE_SIDES = ("buy", "sell")
POSITION_SIZE_TYPES = ("fixed", "percentage")
EVENT_TOPICS = ("portfolio", "copy_trades", "follows", "trades", "market")
AUDIT_SOURCES = ("cli", "sdk")
REJECTION_CODES = ("INSUFFICIENT_FUNDS", "INSUFFICIENT_SHARES", "INVALID_TRADE")
COPY_SETTING_FIELDS = (
    "enabled",
    "position_size_type",
    "position_size",
    "max_position_size",
    "stop_loss_percent",
    "take_profit_percent",
    "max_daily_loss",
    "max_drawdown_percent",
)

TradeSide: TypeAlias = Literal["buy", "sell"]
PositionSizeType: TypeAlias = Literal["fixed", "percentage"]
EventTopic: TypeAlias = Literal["portfolio", "copy_trades", "follows", "trades", "market"]
AuditSource: TypeAlias = Literal["cli", "sdk"]
RejectionCode: TypeAlias = Literal["INSUFFICIENT_FUNDS", "INSUFFICIENT_SHARES", "INVALID_TRADE"]
