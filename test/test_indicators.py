"""
Tests - Technical Indicators
============================
EMA, SMA, RSI (Wilder) y MACD.
"""

import math

import numpy as np
import pandas as pd
import pytest

from src.logic.models import AnalysisParams, InvalidCandleDataError
from src.utils.indicators import (
    calculate_ema,
    calculate_macd,
    calculate_rsi,
    calculate_sma,
    compute_indicator_series,
)


# =============================================================================
# EMA / SMA
# =============================================================================

def test_ema_first_value_equals_first_price():
    ema = calculate_ema([10.0, 20.0, 30.0], 5)
    assert ema.iloc[0] == 10.0
    assert not ema.isna().any()


def test_ema_known_values():
    # k = 2 / (3 + 1) = 0.5
    ema = calculate_ema([1.0, 2.0, 3.0], 3)
    assert ema.tolist() == pytest.approx([1.0, 1.5, 2.25])


def test_ema_converges_to_constant_tail():
    prices = [50.0] * 5 + [100.0] * 200
    ema = calculate_ema(prices, 12)
    assert ema.iloc[-1] == pytest.approx(100.0, abs=1e-6)


def test_sma_warmup_is_nan():
    sma = calculate_sma([1.0, 2.0, 3.0, 4.0], 2)
    assert math.isnan(sma.iloc[0])
    assert sma.iloc[1:].tolist() == pytest.approx([1.5, 2.5, 3.5])


def test_non_positive_period_raises():
    with pytest.raises(ValueError):
        calculate_ema([1.0, 2.0], 0)
    with pytest.raises(ValueError):
        calculate_sma([1.0, 2.0], -1)
    with pytest.raises(ValueError):
        calculate_rsi([1.0, 2.0], 0)


def test_nan_input_raises_invalid_data():
    with pytest.raises(InvalidCandleDataError):
        calculate_ema([1.0, float("nan"), 3.0], 2)


def test_non_numeric_input_raises_invalid_data():
    with pytest.raises(InvalidCandleDataError):
        calculate_sma([1.0, "abc", 3.0], 2)


# =============================================================================
# RSI
# =============================================================================

def test_rsi_short_series_is_neutral():
    rsi = calculate_rsi([100.0 + i for i in range(10)], 14)
    assert len(rsi) == 10
    assert (rsi == 50.0).all()


def test_rsi_warmup_and_flat_series_is_100():
    rsi = calculate_rsi([100.0] * 20, 14)
    assert rsi.iloc[:14].isna().all()
    assert (rsi.iloc[14:] == 100.0).all()


def test_rsi_extremes():
    rising = calculate_rsi([float(i) for i in range(30)], 14)
    falling = calculate_rsi([float(30 - i) for i in range(30)], 14)
    assert (rising.dropna() == 100.0).all()
    assert (falling.dropna() == 0.0).all()


def test_rsi_wilder_smoothing():
    # deltas: +1, -1, +1 -> seed 0.5/0.5 = 50, luego 0.75/0.25 -> RS=3 -> 75
    rsi = calculate_rsi([1.0, 2.0, 1.0, 2.0], 2)
    assert rsi.iloc[:2].isna().all()
    assert rsi.iloc[2] == pytest.approx(50.0)
    assert rsi.iloc[3] == pytest.approx(75.0)


def test_rsi_bounded(mock_candles):
    rsi = calculate_rsi([c.close for c in mock_candles], 14).dropna()
    assert not rsi.empty
    assert ((rsi >= 0) & (rsi <= 100)).all()


# =============================================================================
# MACD
# =============================================================================

def test_macd_histogram_is_line_minus_signal(mock_candles):
    closes = [c.close for c in mock_candles]
    line, signal, histogram = calculate_macd(closes, 12, 26, 9)

    assert len(line) == len(signal) == len(histogram) == len(closes)
    np.testing.assert_allclose(histogram.to_numpy(), (line - signal).to_numpy())


def test_macd_constant_series_is_zero():
    line, signal, histogram = calculate_macd([42.0] * 50)
    assert (line == 0).all()
    assert (signal == 0).all()
    assert (histogram == 0).all()


# =============================================================================
# PIPELINE
# =============================================================================

def test_compute_indicator_series_alignment(mock_candles):
    closes = pd.Series([c.close for c in mock_candles])
    indicators = compute_indicator_series(closes, AnalysisParams())

    assert len(indicators) == len(closes)
    frame = indicators.to_frame()
    assert list(frame.columns) == [
        "ema_fast", "ema_slow", "rsi", "macd_line", "macd_signal", "macd_histogram", "sma_trend"
    ]
    assert frame["sma_trend"].iloc[:19].isna().all()
    assert not frame["sma_trend"].iloc[19:].isna().any()


def test_indicators_are_causal(mock_candles):
    closes = [c.close for c in mock_candles]
    full = compute_indicator_series(closes).to_frame()
    prefix = compute_indicator_series(closes[:60]).to_frame()

    pd.testing.assert_frame_equal(full.iloc[:60], prefix)
