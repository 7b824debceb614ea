"""
Charting Utilities - Candlestick + RSI + MACD Chart Generation
==============================================================
Módulo de utilidad para generar gráficos de velas japonesas con mplfinance,
con un panel de RSI (guías en 30/70) y un panel de MACD (histograma,
línea y señal). Los gráficos se generan en memoria (BytesIO) y se
codifican en Base64.

CRITICAL: Este módulo contiene operaciones bloqueantes (CPU/IO bound).
Debe ejecutarse en un hilo separado con asyncio.to_thread() para no
bloquear el Event Loop principal.

Author: Swing Signal Scanner Team
"""

import io
import base64
from typing import Sequence

import pandas as pd
import mplfinance as mpf
import matplotlib
matplotlib.use('Agg')  # Backend sin GUI para generación en memoria
import matplotlib.pyplot as plt

from src.logic.models import Candle, IndicatorSeries
from src.logic.signal_composer import candles_to_dataframe
from src.utils.logger import get_logger


logger = get_logger(__name__)

RSI_OVERSOLD = 30
RSI_OVERBOUGHT = 70


# =============================================================================
# CHART GENERATION
# =============================================================================

def generate_chart_base64(
    candles: Sequence[Candle],
    indicators: IndicatorSeries,
    lookback: int = 60,
    title: str = "Price Chart"
) -> str:
    """
    Genera un gráfico de velas con paneles de RSI y MACD y lo retorna en Base64.

    IMPORTANTE: Esta función es bloqueante (CPU bound). Debe ejecutarse en
    un hilo separado con asyncio.to_thread() desde código asíncrono.

    Args:
        candles: Velas en orden cronológico
        indicators: Series de indicadores alineadas con las velas
        lookback: Número de velas hacia atrás a mostrar
        title: Título del gráfico

    Returns:
        str: Imagen PNG codificada en Base64 (sin prefijo data:)

    Raises:
        ValueError: Si las series no están alineadas o hay menos de 2 velas
    """
    frame = candles_to_dataframe(candles)

    if len(indicators) != len(frame):
        raise ValueError(
            f"Indicator length ({len(indicators)}) does not match candles ({len(frame)})"
        )
    if len(frame) < 2:
        raise ValueError("At least 2 candles are required to draw a chart")

    lookback = min(lookback, len(frame))

    # mplfinance requiere un índice de tipo DatetimeIndex
    df_subset = frame.tail(lookback).copy()
    df_subset['datetime'] = pd.to_datetime(df_subset['timestamp'], unit='ms')
    df_subset.set_index('datetime', inplace=True)

    df_plot = df_subset[['open', 'high', 'low', 'close', 'volume']].copy()
    df_plot.columns = ['Open', 'High', 'Low', 'Close', 'Volume']

    index = df_plot.index
    indicator_frame = indicators.to_frame().tail(lookback).set_index(index)

    rsi = indicator_frame['rsi']
    histogram = indicator_frame['macd_histogram']

    additional_plots = [
        # Panel 0: tendencia
        mpf.make_addplot(indicator_frame['sma_trend'], panel=0, color='#0080FF', width=1.5),
        # Panel 1: RSI con guías de sobreventa / sobrecompra
        mpf.make_addplot(rsi, panel=1, color='#8000FF', width=1.2, ylabel='RSI', ylim=(0, 100)),
        mpf.make_addplot(
            pd.Series(RSI_OVERSOLD, index=index), panel=1,
            color='#00A000', linestyle='--', width=0.8
        ),
        mpf.make_addplot(
            pd.Series(RSI_OVERBOUGHT, index=index), panel=1,
            color='#D00000', linestyle='--', width=0.8
        ),
        # Panel 2: MACD
        mpf.make_addplot(
            histogram, panel=2, type='bar', width=0.7, ylabel='MACD', color='#9E9E9E'
        ),
        mpf.make_addplot(indicator_frame['macd_line'], panel=2, color='#0080FF', width=1.2),
        mpf.make_addplot(indicator_frame['macd_signal'], panel=2, color='#FF8000', width=1.2),
    ]

    market_colors = mpf.make_marketcolors(
        up='#26A69A',
        down='#EF5350',
        edge='inherit',
        wick='inherit',
        volume='in'
    )

    style = mpf.make_mpf_style(
        base_mpf_style='yahoo',
        marketcolors=market_colors,
        gridstyle='--',
        gridcolor='#CCCCCC',
        facecolor='#FFFFFF',
        figcolor='#FFFFFF',
        y_on_right=False
    )

    buffer = io.BytesIO()

    try:
        fig, _ = mpf.plot(
            df_plot,
            type='candle',
            style=style,
            title=dict(title=title, color='black', fontsize=14, weight='bold'),
            ylabel='Price',
            addplot=additional_plots,
            panel_ratios=(3, 1, 1),
            figsize=(14, 9),
            tight_layout=True,
            returnfig=True
        )

        fig.savefig(buffer, dpi=100, bbox_inches='tight')
        plt.close(fig)

        buffer.seek(0)
        image_bytes = buffer.read()
        base64_string = base64.b64encode(image_bytes).decode('utf-8')

        logger.debug(
            f"🖼️ Gráfico generado | Velas={lookback} | "
            f"Imagen={len(image_bytes)} bytes | Base64={len(base64_string)} chars"
        )

        return base64_string

    finally:
        buffer.close()


def save_chart_png(base64_string: str, path: str) -> None:
    """Decodifica un gráfico Base64 y lo guarda como PNG."""
    with open(path, "wb") as f:
        f.write(base64.b64decode(base64_string))
    logger.info(f"💾 Gráfico guardado en {path}")
