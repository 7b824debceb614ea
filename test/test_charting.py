"""
Tests - Charting
================
Generación del gráfico de velas + RSI + MACD en Base64.
"""

import base64

import pytest

from src.utils.charting import generate_chart_base64, save_chart_png
from src.utils.indicators import compute_indicator_series


def test_chart_is_png_base64(mock_candles):
    indicators = compute_indicator_series([c.close for c in mock_candles])

    chart = generate_chart_base64(mock_candles, indicators, lookback=60, title="AAPL 1H")

    assert "\n" not in chart
    assert base64.b64decode(chart).startswith(b"\x89PNG")


def test_chart_rejects_misaligned_indicators(mock_candles):
    indicators = compute_indicator_series([c.close for c in mock_candles[:-1]])
    with pytest.raises(ValueError):
        generate_chart_base64(mock_candles, indicators)


def test_save_chart_png(mock_candles, tmp_path):
    indicators = compute_indicator_series([c.close for c in mock_candles])
    chart = generate_chart_base64(mock_candles, indicators, lookback=40)

    path = tmp_path / "chart.png"
    save_chart_png(chart, str(path))

    assert path.read_bytes().startswith(b"\x89PNG")
