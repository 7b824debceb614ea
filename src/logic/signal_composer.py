"""
Signal Composer Module
======================
Combina los detectores de patrones en dos condiciones escalonadas:

- cond1 = downtrend AND rsi_divergence AND macd_bullish
  Setup completo, esperando confirmación.
- cond2 = cond1 AND engulfing
  Confirmación de entrada (escalado de cond1).

Expone `analyze(candles)`, punto de entrada del análisis en vivo.

Author: Swing Signal Scanner Team
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from src.logic.models import (
    AnalysisParams,
    AnalysisResult,
    Candle,
    DetectionResult,
    InsufficientData,
    InvalidCandleDataError,
)
from src.logic.patterns import (
    detect_bullish_engulfing,
    detect_downtrend,
    detect_macd_bullish_cross,
    detect_rsi_divergence,
)
from src.utils.indicators import compute_indicator_series
from src.utils.logger import get_logger


logger = get_logger(__name__)

CANDLE_COLUMNS = ["timestamp", "open", "high", "low", "close", "volume"]
PRICE_COLUMNS = ["open", "high", "low", "close", "volume"]


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class DetectorFlags:
    """Salida de los cuatro detectores en una vela."""
    down: bool
    rsi_divergence: bool
    macd_bullish: bool
    engulfing: bool

    @property
    def cond1(self) -> bool:
        return self.down and self.rsi_divergence and self.macd_bullish

    @property
    def cond2(self) -> bool:
        return self.cond1 and self.engulfing


# =============================================================================
# HELPERS
# =============================================================================

def candles_to_dataframe(candles: Sequence[Candle]) -> pd.DataFrame:
    """
    Convierte las velas en un DataFrame validado.

    Args:
        candles: Velas en orden cronológico

    Returns:
        pd.DataFrame: Columnas CANDLE_COLUMNS con índice posicional

    Raises:
        InvalidCandleDataError: Secuencia vacía, valores no numéricos o
            timestamps no estrictamente crecientes
    """
    if candles is None or len(candles) == 0:
        raise InvalidCandleDataError("Candle sequence is empty")

    try:
        rows = [(c.timestamp, c.open, c.high, c.low, c.close, c.volume) for c in candles]
    except AttributeError as e:
        raise InvalidCandleDataError(f"Invalid candle object: {e}") from e

    frame = pd.DataFrame(rows, columns=CANDLE_COLUMNS)

    try:
        prices = frame[PRICE_COLUMNS].astype("float64")
    except (TypeError, ValueError) as e:
        raise InvalidCandleDataError(f"Non-numeric candle field: {e}") from e

    if not np.isfinite(prices.to_numpy()).all():
        raise InvalidCandleDataError("Candle fields contain NaN or infinite values")

    timestamps = pd.to_numeric(frame["timestamp"], errors="coerce")
    if timestamps.isna().any():
        raise InvalidCandleDataError("Candle timestamps must be numeric")
    if (timestamps.diff().iloc[1:] <= 0).any():
        raise InvalidCandleDataError("Candle timestamps must be strictly increasing")

    frame[PRICE_COLUMNS] = prices
    return frame


def evaluate_detectors(
    frame: pd.DataFrame,
    sma_trend: pd.Series,
    rsi: pd.Series,
    histogram: pd.Series,
    params: AnalysisParams
) -> DetectorFlags:
    """
    Evalúa los cuatro detectores sobre una vista que termina en la vela actual.

    Las series deben estar alineadas con `frame` y tener su misma longitud.
    """
    return DetectorFlags(
        down=detect_downtrend(
            frame, sma_trend, params.downtrend_min_candles, params.trend_slope_offset
        ),
        rsi_divergence=detect_rsi_divergence(
            frame, rsi, params.divergence_window, params.swing_half_width
        ),
        macd_bullish=detect_macd_bullish_cross(histogram, params.macd_cross_lookback),
        engulfing=detect_bullish_engulfing(frame),
    )


# =============================================================================
# ANALYSIS
# =============================================================================

def analyze(
    candles: Sequence[Candle],
    params: Optional[AnalysisParams] = None
) -> AnalysisResult:
    """
    Analiza la última vela de la secuencia.

    Args:
        candles: Velas en orden cronológico
        params: Parámetros (default: AnalysisParams.from_config())

    Returns:
        InsufficientData si hay menos de `params.min_candles` velas;
        DetectionResult en caso contrario

    Raises:
        InvalidCandleDataError: Entrada vacía o con valores inválidos
    """
    params = params or AnalysisParams.from_config()
    params.validate()

    frame = candles_to_dataframe(candles)

    if len(frame) < params.min_candles:
        return InsufficientData(required=params.min_candles, available=len(frame))

    indicators = compute_indicator_series(frame["close"], params)
    flags = evaluate_detectors(
        frame, indicators.sma_trend, indicators.rsi, indicators.macd_histogram, params
    )

    defined_rsi = indicators.rsi.dropna()
    last_rsi = float(defined_rsi.iloc[-1]) if not defined_rsi.empty else None

    result = DetectionResult(
        down=flags.down,
        rsi_divergence=flags.rsi_divergence,
        macd_bullish=flags.macd_bullish,
        engulfing=flags.engulfing,
        cond1=flags.cond1,
        cond2=flags.cond2,
        last_rsi=last_rsi,
        last_macd_histogram=float(indicators.macd_histogram.iloc[-1]),
        indicators=indicators,
    )

    logger.debug(
        f"🔍 Análisis | Velas={len(frame)} | "
        f"Down={flags.down} Div={flags.rsi_divergence} "
        f"MACD={flags.macd_bullish} Engulf={flags.engulfing} | "
        f"cond1={flags.cond1} cond2={flags.cond2}"
    )

    return result
