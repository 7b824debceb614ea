"""
Tests - Signal Composer
=======================
Validación de velas, composición cond1/cond2 y punto de entrada `analyze`.
"""

from dataclasses import replace

import pandas as pd
import pytest

from src.logic.models import (
    AnalysisParams,
    Candle,
    DetectionResult,
    InsufficientData,
    InvalidCandleDataError,
)
from src.logic.signal_composer import (
    DetectorFlags,
    analyze,
    candles_to_dataframe,
    evaluate_detectors,
)

from conftest import HOUR_MS, START_MS, candles_from_closes


# =============================================================================
# ESCENARIO CONSTRUIDO (40 velas)
# =============================================================================

def _reversal_scenario(engulfing: bool = True):
    """
    40 velas bajistas con dos mínimos locales (i=20 y i=32), el segundo
    más bajo, y una última vela que envuelve (o no) a la anterior.
    """
    candles = []
    for i in range(40):
        base = 140.0 - i
        open_price, close = base + 0.5, base - 0.5
        low = close - 1.0
        if i == 20:
            low = close - 10.0  # 109.5
        if i == 32:
            low = close - 15.0  # 92.5
        if i == 39:
            open_price = 101.3
            close = 103.0 if engulfing else 101.0
            low = min(open_price, close) - 1.0
        candles.append(Candle(
            timestamp=START_MS + i * HOUR_MS,
            open=open_price,
            high=max(open_price, close) + 1.0,
            low=low,
            close=close,
            volume=1000.0,
        ))

    frame = candles_to_dataframe(candles)
    sma_trend = pd.Series([150.0 - i for i in range(40)])
    rsi = [40.0] * 40
    rsi[20] = 25.0
    rsi[32] = 35.0
    histogram = [-1.0] * 39 + [0.2]
    return frame, sma_trend, pd.Series(rsi), pd.Series(histogram)


def test_constructed_scenario_triggers_cond2():
    frame, sma, rsi, histogram = _reversal_scenario(engulfing=True)
    flags = evaluate_detectors(frame, sma, rsi, histogram, AnalysisParams())

    assert flags.down
    assert flags.rsi_divergence
    assert flags.macd_bullish
    assert flags.engulfing
    assert flags.cond1 and flags.cond2


def test_constructed_scenario_without_engulfing_is_cond1_only():
    frame, sma, rsi, histogram = _reversal_scenario(engulfing=False)
    flags = evaluate_detectors(frame, sma, rsi, histogram, AnalysisParams())

    assert flags.cond1 is True
    assert flags.engulfing is False
    assert flags.cond2 is False


def test_without_macd_cross_neither_condition_fires():
    frame, sma, rsi, _ = _reversal_scenario(engulfing=True)
    flags = evaluate_detectors(frame, sma, rsi, pd.Series([-1.0] * 40), AnalysisParams())

    assert flags.engulfing is True
    assert flags.cond1 is False
    assert flags.cond2 is False


# =============================================================================
# SECUENCIA REAL (indicadores calculados)
# =============================================================================

def test_analyze_reaches_cond2_on_real_candles(traded_sequences):
    candles, report = traded_sequences[0]
    entry = report.trades[0].entry_index

    result = analyze(candles[:entry + 1])

    assert isinstance(result, DetectionResult)
    assert all(result.flags().values())
    assert result.last_rsi is not None
    assert len(result.indicators.rsi) == entry + 1


def test_real_setup_with_red_last_candle_is_cond1_only(traded_sequences):
    candles, report = traded_sequences[0]
    entry = report.trades[0].entry_index
    last = candles[entry]

    # Mismo cierre y mínimo: solo cambia el cuerpo de la última vela
    red = replace(last, open=last.close + 0.01, high=max(last.high, last.close + 0.01))
    result = analyze(candles[:entry] + [red])

    assert result.cond1 is True
    assert result.engulfing is False
    assert result.cond2 is False


def test_detector_flags_composition():
    assert DetectorFlags(True, True, True, False).cond1 is True
    assert DetectorFlags(True, True, True, False).cond2 is False
    assert DetectorFlags(False, True, True, True).cond2 is False
    assert DetectorFlags(True, True, True, True).cond2 is True


# =============================================================================
# VALIDACIÓN DE VELAS
# =============================================================================

def test_empty_candles_raise():
    with pytest.raises(InvalidCandleDataError):
        analyze([])


def test_non_increasing_timestamps_raise():
    candles = candles_from_closes([100.0] * 35)
    candles[10] = replace(candles[10], timestamp=candles[9].timestamp)
    with pytest.raises(InvalidCandleDataError):
        analyze(candles)


def test_nan_price_raises():
    candles = candles_from_closes([100.0] * 35)
    candles[-1] = replace(candles[-1], close=float("nan"))
    with pytest.raises(InvalidCandleDataError):
        analyze(candles)


def test_invalid_params_raise_value_error(mock_candles):
    with pytest.raises(ValueError):
        analyze(mock_candles, AnalysisParams(rsi_period=0))


# =============================================================================
# ANALYZE
# =============================================================================

def test_fewer_than_min_candles_is_insufficient():
    result = analyze(candles_from_closes([100.0 + i for i in range(29)]))

    assert isinstance(result, InsufficientData)
    assert result.status == "insufficient"
    assert result.required == 30
    assert result.available == 29


def test_flat_series(flat_candles):
    result = analyze(flat_candles)

    assert isinstance(result, DetectionResult)
    assert result.last_rsi == 100.0
    assert result.last_macd_histogram == 0.0
    assert result.down is False
    assert result.macd_bullish is False
    assert result.cond1 is False and result.cond2 is False


def test_rising_series_has_no_signal(rising_candles):
    result = analyze(rising_candles)

    assert isinstance(result, DetectionResult)
    assert result.down is False
    assert result.cond1 is False


def test_analyze_is_deterministic(mock_candles):
    first = analyze(mock_candles)
    second = analyze(mock_candles)
    assert first == second
    assert first.flags() == second.flags()


def test_analyze_does_not_mutate_input(mock_candles):
    snapshot = list(mock_candles)
    analyze(mock_candles)
    assert mock_candles == snapshot


def test_cond2_implies_cond1_on_every_prefix(mock_candles):
    for end in range(30, len(mock_candles) + 1):
        result = analyze(mock_candles[:end])
        assert isinstance(result, DetectionResult)
        assert not result.cond2 or result.cond1
        assert result.last_rsi is None or 0.0 <= result.last_rsi <= 100.0
