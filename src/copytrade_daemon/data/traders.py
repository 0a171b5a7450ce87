"""Simulated trader roster and reference prices."""

from __future__ import annotations

from copytrade_daemon.models.traders import RiskLevel, Strategy, Trader

BASE_PRICES: dict[str, float] = {
    "AAPL": 180.0,
    "MSFT": 390.0,
    "GOOGL": 150.0,
    "AMZN": 170.0,
    "META": 480.0,
    "TSLA": 180.0,
    "NVDA": 900.0,
    "AMD": 160.0,
    "DIS": 110.0,
    "NFLX": 600.0,
    "SPY": 500.0,
    "QQQ": 440.0,
    "ARKK": 45.0,
    "GME": 20.0,
    "AMC": 5.0,
    "PLTR": 25.0,
    "SOFI": 8.0,
    "HOOD": 15.0,
    "COIN": 250.0,
    "SQ": 80.0,
    "KO": 60.0,
    "JNJ": 155.0,
    "PG": 165.0,
    "ROKU": 65.0,
    "SBUX": 90.0,
    "VTI": 250.0,
    "XLK": 210.0,
    "XLF": 40.0,
}

TRADERS: tuple[Trader, ...] = (
    Trader(
        id=1,
        name="Buffett_Bot",
        strategy=Strategy.VALUE,
        risk_level=RiskLevel.LOW,
        trade_frequency=0.3,
        avg_size=1000,
        preferred_symbols=["AAPL", "MSFT", "DIS", "KO", "JNJ", "PG"],
        followers=5218,
        return_30d=8.7,
        win_rate=78,
        sharpe_ratio=2.5,
        description="Value investing bot focused on fundamentally strong companies",
    ),
    Trader(
        id=2,
        name="CathieWoodAI",
        strategy=Strategy.GROWTH,
        risk_level=RiskLevel.HIGH,
        trade_frequency=1.5,
        avg_size=2000,
        preferred_symbols=["TSLA", "NVDA", "COIN", "PLTR", "SQ", "ROKU"],
        followers=4392,
        return_30d=16.5,
        win_rate=61,
        sharpe_ratio=1.7,
        description="Hunts for high-growth disruptive tech opportunities",
    ),
    Trader(
        id=3,
        name="RealPhilTown",
        strategy=Strategy.MOMENTUM,
        risk_level=RiskLevel.MEDIUM,
        trade_frequency=2.0,
        avg_size=1500,
        preferred_symbols=["AMZN", "AAPL", "MSFT", "GOOGL", "META", "AMD"],
        followers=3187,
        return_30d=11.2,
        win_rate=72,
        sharpe_ratio=2.1,
        description="CANSLIM practitioner buying technically strong breakouts",
    ),
    Trader(
        id=4,
        name="MemeStockLegend",
        strategy=Strategy.MEME,
        risk_level=RiskLevel.HIGH,
        trade_frequency=3.0,
        avg_size=800,
        preferred_symbols=["GME", "AMC", "TSLA", "PLTR"],
        followers=8761,
        return_30d=24.8,
        win_rate=52,
        sharpe_ratio=1.1,
        description="Chases popular meme stocks and social sentiment",
    ),
    Trader(
        id=5,
        name="YourFriendMike",
        strategy=Strategy.MIXED,
        risk_level=RiskLevel.MEDIUM,
        trade_frequency=0.8,
        avg_size=500,
        preferred_symbols=["AAPL", "TSLA", "DIS", "NFLX", "AMZN", "SBUX"],
        followers=1053,
        return_30d=5.9,
        win_rate=64,
        sharpe_ratio=1.8,
        description="Sensible trades based on news and intuition",
    ),
    Trader(
        id=6,
        name="RedditInvestor42",
        strategy=Strategy.SOCIAL,
        risk_level=RiskLevel.HIGH,
        trade_frequency=2.5,
        avg_size=700,
        preferred_symbols=["TSLA", "NVDA", "AMD", "PLTR", "SOFI", "HOOD"],
        followers=2471,
        return_30d=14.2,
        win_rate=59,
        sharpe_ratio=1.4,
        description="Follows WSB hot picks with an eye on sentiment",
    ),
    Trader(
        id=7,
        name="IndexETFQueen",
        strategy=Strategy.ETF,
        risk_level=RiskLevel.LOW,
        trade_frequency=0.5,
        avg_size=2000,
        preferred_symbols=["SPY", "QQQ", "VTI", "ARKK", "XLK", "XLF"],
        followers=1824,
        return_30d=4.2,
        win_rate=81,
        sharpe_ratio=2.7,
        description="ETF investor with occasional sector rotation",
    ),
)

_TRADERS_BY_ID: dict[int, Trader] = {trader.id: trader for trader in TRADERS}


def get_trader(trader_id: int) -> Trader | None:
    return _TRADERS_BY_ID.get(trader_id)


def all_symbols() -> list[str]:
    symbols: set[str] = set()
    for trader in TRADERS:
        symbols.update(trader.preferred_symbols)
    return sorted(symbols)
