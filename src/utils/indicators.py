"""
Technical Analysis Indicators
=============================
Funciones para calcular indicadores técnicos usando pandas.

Todas las series devueltas tienen la misma longitud que la entrada y un
índice posicional (RangeIndex). Los valores de calentamiento son NaN.
Ningún cálculo redondea: el redondeo es responsabilidad de la capa de
presentación.
"""

from typing import Iterable, Optional, Tuple

import numpy as np
import pandas as pd

from src.logic.models import AnalysisParams, IndicatorSeries, InvalidCandleDataError


RSI_NEUTRAL = 50.0


def _to_float_series(values: Iterable[float]) -> pd.Series:
    """
    Convierte una secuencia de precios en pd.Series float64 posicional.

    Raises:
        InvalidCandleDataError: Si hay valores no numéricos o no finitos
    """
    if isinstance(values, pd.Series):
        values = values.to_numpy()
    try:
        array = np.asarray(list(values), dtype="float64")
    except (TypeError, ValueError) as e:
        raise InvalidCandleDataError(f"Non-numeric price value: {e}") from e

    if array.ndim != 1:
        raise InvalidCandleDataError(f"Expected a 1-D price sequence, got shape {array.shape}")
    if not np.isfinite(array).all():
        raise InvalidCandleDataError("Price sequence contains NaN or infinite values")

    return pd.Series(array)


def _check_period(period: int) -> None:
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")


def calculate_ema(series: Iterable[float], period: int) -> pd.Series:
    """
    Calcula la Media Móvil Exponencial (EMA).

    k = 2 / (period + 1). El primer valor es igual al primer precio y no
    hay periodo de calentamiento.

    Args:
        series: Serie de precios (típicamente Close)
        period: Periodo de la EMA

    Returns:
        pd.Series: Serie con valores de EMA
    """
    _check_period(period)
    return _to_float_series(series).ewm(span=period, adjust=False).mean()


def calculate_sma(series: Iterable[float], period: int) -> pd.Series:
    """
    Calcula la Media Móvil Simple (SMA) de los últimos `period` valores.

    Returns:
        pd.Series: NaN para índices < period - 1
    """
    _check_period(period)
    return _to_float_series(series).rolling(window=period).mean()


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    # avg_loss == 0 se evalúa primero: un tramo plano da 100, no 50
    if avg_loss == 0:
        return 100.0
    return 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)


def calculate_rsi(series: Iterable[float], period: int = 14) -> pd.Series:
    """
    Calcula el Relative Strength Index (RSI) con suavizado de Wilder.

    - Con menos de period + 1 precios devuelve 50 en todos los índices.
    - Las medias iniciales son el promedio simple de las primeras `period`
      diferencias; luego avg = (avg * (period - 1) + x) / period.
    - Los primeros `period` índices son NaN.

    Args:
        series: Serie de precios (típicamente Close)
        period: Periodo del RSI (default: 14)

    Returns:
        pd.Series: Serie con valores de RSI (0-100)
    """
    _check_period(period)
    closes = _to_float_series(series).tolist()
    n = len(closes)

    if n < period + 1:
        return pd.Series(np.full(n, RSI_NEUTRAL))

    rsi = np.full(n, np.nan)

    avg_gain = 0.0
    avg_loss = 0.0
    for i in range(1, period + 1):
        delta = closes[i] - closes[i - 1]
        if delta > 0:
            avg_gain += delta
        else:
            avg_loss -= delta
    avg_gain /= period
    avg_loss /= period
    rsi[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period + 1, n):
        delta = closes[i] - closes[i - 1]
        avg_gain = (avg_gain * (period - 1) + max(delta, 0.0)) / period
        avg_loss = (avg_loss * (period - 1) + max(-delta, 0.0)) / period
        rsi[i] = _rsi_value(avg_gain, avg_loss)

    return pd.Series(rsi)


def calculate_macd(
    series: Iterable[float],
    fast: int = 12,
    slow: int = 26,
    signal_period: int = 9
) -> Tuple[pd.Series, pd.Series, pd.Series]:
    """
    Calcula el MACD.

    Args:
        series: Serie de precios (típicamente Close)
        fast: Periodo de la EMA rápida
        slow: Periodo de la EMA lenta
        signal_period: Periodo de la EMA de la línea MACD

    Returns:
        tuple: (line, signal, histogram), misma longitud que la entrada
    """
    closes = _to_float_series(series)
    line = calculate_ema(closes, fast) - calculate_ema(closes, slow)
    signal = calculate_ema(line, signal_period)
    histogram = line - signal
    return line, signal, histogram


def compute_indicator_series(
    closes: Iterable[float],
    params: Optional[AnalysisParams] = None
) -> IndicatorSeries:
    """
    Calcula todos los indicadores del pipeline sobre los cierres.

    Args:
        closes: Precios de cierre en orden cronológico
        params: Parámetros (default: AnalysisParams())

    Returns:
        IndicatorSeries alineada con `closes`
    """
    params = params or AnalysisParams()
    closes = _to_float_series(closes)

    line, signal, histogram = calculate_macd(
        closes, params.macd_fast, params.macd_slow, params.macd_signal
    )

    return IndicatorSeries(
        ema_fast=calculate_ema(closes, params.macd_fast),
        ema_slow=calculate_ema(closes, params.macd_slow),
        rsi=calculate_rsi(closes, params.rsi_period),
        macd_line=line,
        macd_signal=signal,
        macd_histogram=histogram,
        sma_trend=calculate_sma(closes, params.trend_sma_period),
    )
