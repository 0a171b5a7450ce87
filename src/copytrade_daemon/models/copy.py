"""Copy-trading settings and decision models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class PositionSizeType(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class SkipReason(str, Enum):
    NOT_FOLLOWING = "not_following"
    NO_SETTINGS = "no_settings"
    DISABLED = "disabled"
    INVALID_CONFIGURATION = "invalid_configuration"
    INVALID_TRADE = "invalid_trade"
    ZERO_QUANTITY = "zero_quantity"


class CopySettings(BaseModel):
    """Per (user, trader) copy configuration.

    Only ``enabled``, ``position_size_type``, ``position_size`` and
    ``max_position_size`` drive copy decisions; the remaining limits are stored
    and returned to clients unchanged.
    """

    enabled: bool = True
    position_size_type: PositionSizeType = PositionSizeType.FIXED
    position_size: float = 1000.0
    max_position_size: float = 10_000.0
    stop_loss_percent: float | None = None
    take_profit_percent: float | None = None
    max_daily_loss: float | None = None
    max_drawdown_percent: float | None = None

    def configuration_errors(self) -> list[str]:
        errors: list[str] = []
        if self.position_size <= 0:
            errors.append("position_size must be > 0")
        if self.max_position_size <= 0:
            errors.append("max_position_size must be > 0")
        return errors


class CopyDecision(BaseModel):
    should_copy: bool = False
    quantity: int = 0
    reason: SkipReason | None = None
    details: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def skip(cls, reason: SkipReason, **details: str) -> "CopyDecision":
        return cls(should_copy=False, quantity=0, reason=reason, details=details)

    @classmethod
    def copy_with(cls, quantity: int) -> "CopyDecision":
        return cls(should_copy=True, quantity=quantity)
