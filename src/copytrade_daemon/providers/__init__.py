"""Quote provider abstractions and concrete implementations."""

from copytrade_daemon.config import MarketDataConfig
from copytrade_daemon.providers.alphavantage import AlphaVantageProvider
from copytrade_daemon.providers.base import QuoteProvider
from copytrade_daemon.providers.synthetic import SyntheticQuoteProvider


def build_provider(settings: MarketDataConfig) -> QuoteProvider:
    if settings.provider == "alphavantage":
        return AlphaVantageProvider(
            api_key=settings.alphavantage_api_key,
            timeout_seconds=settings.request_timeout_seconds,
            min_interval_seconds=settings.alphavantage_min_interval_seconds,
        )
    return SyntheticQuoteProvider(jitter_pct=settings.fallback_jitter_pct)


__all__ = ["AlphaVantageProvider", "QuoteProvider", "SyntheticQuoteProvider", "build_provider"]
