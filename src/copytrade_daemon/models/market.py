"""Market-data domain models."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class Quote(BaseModel):
    symbol: str
    price: float
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    source: str = "synthetic"
    fallback_used: bool = False
    change: float | None = None
    change_percent: float | None = None
    volume: float | None = None


class QuoteCacheEntry(BaseModel):
    symbol: str
    price: float
    fetched_at: datetime
    source: str

    def age_seconds(self, now: datetime | None = None) -> float:
        return ((now or datetime.now(UTC)) - self.fetched_at).total_seconds()
