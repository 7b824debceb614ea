"""
Fixtures compartidas para los tests del scanner.
"""

from typing import List, Sequence, Tuple

import pytest

from src.logic.backtest import backtest
from src.logic.models import BacktestReport, Candle
from src.services.market_data_service import generate_mock_candles


HOUR_MS = 3_600_000
START_MS = 1_700_000_000_000


def candles_from_closes(closes: Sequence[float], spread: float = 0.5) -> List[Candle]:
    """Velas horarias cuyo open es el cierre anterior."""
    candles = []
    prev = closes[0]
    for i, close in enumerate(closes):
        open_price = prev
        candles.append(Candle(
            timestamp=START_MS + i * HOUR_MS,
            open=float(open_price),
            high=float(max(open_price, close) + spread),
            low=float(min(open_price, close) - spread),
            close=float(close),
            volume=1000.0,
        ))
        prev = close
    return candles


@pytest.fixture
def mock_candles() -> List[Candle]:
    return generate_mock_candles("AAPL", count=120, seed=7, end_ms=START_MS)


@pytest.fixture
def rising_candles() -> List[Candle]:
    return candles_from_closes([100 + i for i in range(60)])


@pytest.fixture
def flat_candles() -> List[Candle]:
    return candles_from_closes([100.0] * 40, spread=0.0)


SIGNAL_TICKER = "TSLA"
SIGNAL_SEEDS = range(300)


@pytest.fixture(scope="session")
def traded_sequences() -> List[Tuple[List[Candle], BacktestReport]]:
    """
    Secuencias sintéticas de 150 velas en las que los detectores reales
    abren al menos una operación (primeras 3 semillas que lo cumplen).
    """
    found = []
    for seed in SIGNAL_SEEDS:
        candles = generate_mock_candles(SIGNAL_TICKER, count=150, seed=seed, end_ms=START_MS)
        report = backtest(candles)
        if report.trade_count > 0:
            found.append((candles, report))
            if len(found) == 3:
                break
    return found
