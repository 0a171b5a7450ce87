"""Trader profile models for the simulated leaderboard."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class Strategy(str, Enum):
    VALUE = "Value"
    GROWTH = "Growth"
    MOMENTUM = "Momentum"
    MEME = "Meme"
    MIXED = "Mixed"
    SOCIAL = "Social"
    ETF = "ETF"


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Trader(BaseModel):
    id: int
    name: str
    strategy: Strategy
    risk_level: RiskLevel
    trade_frequency: float = Field(gt=0, description="Trades per hour.")
    avg_size: float = Field(gt=0, description="Average position size in dollars.")
    preferred_symbols: list[str]
    followers: int = 0
    return_30d: float = 0.0
    win_rate: float = 0.0
    sharpe_ratio: float | None = None
    description: str = ""
