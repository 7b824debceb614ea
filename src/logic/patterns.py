"""
Pattern Detectors - Swing Reversal Signals
==========================================
Detectores booleanos independientes que buscan el agotamiento de una
tendencia bajista en velas de 1 hora.

Detectores implementados:
1. Downtrend - Precio bajo una SMA descendente
2. RSI Divergence - Divergencia alcista entre mínimos de precio y RSI
3. MACD Bullish Cross - Histograma cruzando el cero hacia arriba
4. Bullish Engulfing - Vela alcista que envuelve a la bajista anterior

Cada detector recibe una vista de solo lectura de las velas/indicadores
(terminando en la vela evaluada) y retorna bool. Ninguno modifica su entrada.

Author: Swing Signal Scanner Team
"""

from typing import List, Tuple

import pandas as pd


def detect_downtrend(
    candles: pd.DataFrame,
    sma_trend: pd.Series,
    min_candles: int = 25,
    slope_offset: int = 6
) -> bool:
    """
    Detecta una tendencia bajista activa.

    CARACTERÍSTICAS:
    - Requiere al menos `min_candles` velas
    - Último cierre por debajo de la última SMA
    - La SMA está cayendo: último valor menor que sma[-slope_offset]

    Args:
        candles: DataFrame con columna 'close'
        sma_trend: SMA de tendencia alineada con las velas
        min_candles: Velas mínimas requeridas
        slope_offset: Posición (desde el final) del valor de comparación

    Returns:
        bool: True si la tendencia bajista está activa
    """
    if len(candles) < max(min_candles, slope_offset):
        return False

    last_close = candles["close"].iloc[-1]
    last_sma = sma_trend.iloc[-1]
    prior_sma = sma_trend.iloc[-slope_offset]

    # Comparaciones con NaN son False: SMA sin calentar no es tendencia
    return bool(last_close < last_sma and last_sma < prior_sma)


def find_swing_lows(lows: List[float], half_width: int = 2) -> List[int]:
    """
    Índices de los mínimos locales estrictos.

    Un mínimo local es una vela cuyo low es estrictamente menor que el low
    de las `half_width` velas anteriores y posteriores. Las velas de los
    bordes nunca califican.

    Args:
        lows: Precios mínimos en orden cronológico
        half_width: Velas a cada lado (2 = mínimo de 5 velas)

    Returns:
        List[int]: Posiciones de los mínimos locales
    """
    swing_lows = []
    for i in range(half_width, len(lows) - half_width):
        neighbours = lows[i - half_width:i] + lows[i + 1:i + half_width + 1]
        if all(lows[i] < other for other in neighbours):
            swing_lows.append(i)
    return swing_lows


def detect_rsi_divergence(
    candles: pd.DataFrame,
    rsi: pd.Series,
    window: int = 30,
    half_width: int = 2
) -> bool:
    """
    Detecta divergencia alcista de RSI.

    LÓGICA:
    - Se analizan las últimas `window` velas
    - Se buscan mínimos locales del precio (ver find_swing_lows)
    - Se descartan los mínimos cuyo RSI es indefinido (calentamiento)
    - Con al menos 2 mínimos, se comparan los dos últimos:
      precio hace un mínimo MÁS BAJO y el RSI un mínimo MÁS ALTO

    Args:
        candles: DataFrame con columna 'low'
        rsi: Serie RSI alineada con las velas
        window: Velas hacia atrás a analizar
        half_width: Velas a cada lado de un mínimo local

    Returns:
        bool: True si hay divergencia alcista
    """
    if len(candles) < window:
        return False

    recent_lows = candles["low"].iloc[-window:].tolist()
    recent_rsi = rsi.iloc[-window:].tolist()

    points: List[Tuple[float, float]] = [
        (recent_lows[i], recent_rsi[i])
        for i in find_swing_lows(recent_lows, half_width)
        if not pd.isna(recent_rsi[i])
    ]

    if len(points) < 2:
        return False

    (prev_price, prev_rsi), (last_price, last_rsi) = points[-2:]
    return last_price < prev_price and last_rsi > prev_rsi


def detect_macd_bullish_cross(histogram: pd.Series, lookback: int = 5) -> bool:
    """
    Detecta un cruce alcista del histograma MACD sobre la línea cero.

    Activo si en los últimos `lookback` valores existe un par consecutivo
    con valor anterior < 0 y valor actual >= 0.

    Args:
        histogram: Histograma MACD
        lookback: Valores recientes a inspeccionar

    Returns:
        bool: True si hubo cruce alcista
    """
    if len(histogram) < lookback + 1:
        return False

    recent = histogram.iloc[-lookback:].tolist()
    return any(prev < 0 and curr >= 0 for prev, curr in zip(recent, recent[1:]))


def detect_bullish_engulfing(candles: pd.DataFrame) -> bool:
    """
    Detecta el patrón Bullish Engulfing (Envolvente Alcista).

    CARACTERÍSTICAS:
    - Vela anterior ROJA (close < open)
    - Vela actual VERDE (close > open)
    - El cuerpo actual envuelve al anterior:
      open actual <= close anterior Y close actual >= open anterior

    Args:
        candles: DataFrame con columnas 'open' y 'close'

    Returns:
        bool: True si las dos últimas velas forman el patrón
    """
    if len(candles) < 2:
        return False

    prev_open, curr_open = candles["open"].iloc[-2:].tolist()
    prev_close, curr_close = candles["close"].iloc[-2:].tolist()

    return (
        prev_close < prev_open
        and curr_close > curr_open
        and curr_open <= prev_close
        and curr_close >= prev_open
    )
