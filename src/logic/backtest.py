"""
Backtest Simulator - Historical Replay of the Detection Logic
==============================================================
Reproduce vela a vela la misma lógica de `analyze` sobre datos históricos
y simula la economía de cada entrada (stop loss / take profit / timeout).

SIN LOOKAHEAD: en la vela i solo se usan las velas [0..i], exactamente lo
que habría visto un análisis en vivo en ese momento.

Modos:
- precomputed (default): los indicadores son causales (el valor en i solo
  depende de [0..i]), así que se calculan una vez sobre toda la serie y
  los detectores se evalúan sobre vistas del prefijo.
- naive: recalcula los indicadores desde cero en cada vela, O(n²).
  Se conserva como referencia de equivalencia.

Author: Swing Signal Scanner Team
"""

from dataclasses import replace
from typing import List, Optional, Sequence

import pandas as pd

from src.logic.models import (
    AnalysisParams,
    BacktestOutcome,
    BacktestParams,
    BacktestReport,
    Candle,
    ExitReason,
    InsufficientData,
    Trade,
)
from src.logic.signal_composer import candles_to_dataframe, evaluate_detectors
from src.utils.indicators import compute_indicator_series
from src.utils.logger import get_logger


logger = get_logger(__name__)


class BacktestSimulator:
    """
    Simulador histórico de señales cond2.

    Responsabilidades:
    - Recorrer cada vela evaluable sin mirar al futuro
    - Abrir una operación hipotética cuando cond2 se cumple
    - Resolver la salida (stop antes que take en la misma vela)
    - Agregar win rate y PnL
    """

    def __init__(
        self,
        params: Optional[BacktestParams] = None,
        analysis_params: Optional[AnalysisParams] = None
    ):
        self.params = params or BacktestParams.from_config()
        self.analysis_params = analysis_params or AnalysisParams.from_config()
        self.params.validate()
        self.analysis_params.validate()

    def run(self, candles: Sequence[Candle], naive: bool = False) -> BacktestOutcome:
        """
        Ejecuta el backtest completo.

        Args:
            candles: Velas históricas en orden cronológico
            naive: Recalcular indicadores en cada vela (referencia O(n²))

        Returns:
            InsufficientData si hay menos de `min_candles` velas;
            BacktestReport en caso contrario

        Raises:
            InvalidCandleDataError: Entrada vacía o con valores inválidos
        """
        frame = candles_to_dataframe(candles)
        n = len(frame)

        if n < self.params.min_candles:
            logger.debug(f"⏳ Backtest omitido: {n} velas, se necesitan {self.params.min_candles}")
            return InsufficientData(required=self.params.min_candles, available=n)

        full = None if naive else compute_indicator_series(frame["close"], self.analysis_params)

        trades: List[Trade] = []
        for i in range(self.params.start_index, n - self.params.hold_bars):
            view = frame.iloc[:i + 1]

            if full is None:
                indicators = compute_indicator_series(view["close"], self.analysis_params)
                sma_trend = indicators.sma_trend
                rsi = indicators.rsi
                histogram = indicators.macd_histogram
            else:
                sma_trend = full.sma_trend.iloc[:i + 1]
                rsi = full.rsi.iloc[:i + 1]
                histogram = full.macd_histogram.iloc[:i + 1]

            flags = evaluate_detectors(view, sma_trend, rsi, histogram, self.analysis_params)
            if flags.cond1 and flags.engulfing:
                trades.append(self._simulate_trade(frame, i))

        report = self._aggregate(trades)

        logger.info(
            f"📊 Backtest completado | Velas={n} | Operaciones={report.trade_count} | "
            f"WinRate={report.win_rate:.1f}% | PnL total={report.total_pnl:+.2f}%"
        )

        return report

    def _simulate_trade(self, frame: pd.DataFrame, i: int) -> Trade:
        """Abre en el cierre de la vela i y resuelve la salida."""
        hold = self.params.hold_bars
        entry = float(frame["close"].iloc[i])
        stop = entry * (1 - self.params.stop_pct)
        take = entry * (1 + self.params.take_pct)

        exit_price = float(frame["close"].iloc[i + hold])
        exit_offset = hold
        exit_reason = ExitReason.TIMEOUT

        lows = frame["low"].iloc[i + 1:i + hold + 1].tolist()
        highs = frame["high"].iloc[i + 1:i + hold + 1].tolist()

        for j, (low, high) in enumerate(zip(lows, highs), start=1):
            # Stop tiene prioridad si ambos niveles se tocan en la misma vela
            if low <= stop:
                exit_price, exit_offset, exit_reason = stop, j, ExitReason.STOP_LOSS
                break
            if high >= take:
                exit_price, exit_offset, exit_reason = take, j, ExitReason.TAKE_PROFIT
                break

        trade = Trade(
            entry_index=i,
            entry_price=entry,
            stop_price=stop,
            take_price=take,
            exit_price=exit_price,
            exit_offset=exit_offset,
            exit_reason=exit_reason,
            pnl_percent=(exit_price - entry) / entry * 100,
            entry_timestamp=int(frame["timestamp"].iloc[i]),
        )

        logger.debug(
            f"💼 Trade @ {i} | Entry={entry} | Exit={exit_price} "
            f"({exit_reason.value}, +{exit_offset}) | PnL={trade.pnl_percent:+.2f}%"
        )

        return trade

    @staticmethod
    def _aggregate(trades: List[Trade]) -> BacktestReport:
        if not trades:
            return BacktestReport(trades=(), win_rate=0.0, average_pnl=0.0, total_pnl=0.0)

        pnls = [t.pnl_percent for t in trades]
        wins = sum(1 for pnl in pnls if pnl > 0)
        total = sum(pnls)

        return BacktestReport(
            trades=tuple(trades),
            win_rate=100.0 * wins / len(trades),
            average_pnl=total / len(trades),
            total_pnl=total,
        )


def backtest(
    candles: Sequence[Candle],
    hold_bars: Optional[int] = None,
    stop_pct: Optional[float] = None,
    take_pct: Optional[float] = None,
    analysis_params: Optional[AnalysisParams] = None,
    naive: bool = False
) -> BacktestOutcome:
    """
    Atajo funcional sobre BacktestSimulator.

    Los parámetros omitidos toman el valor de Config.BACKTEST
    (por defecto hold_bars=6, stop_pct=0.02, take_pct=0.04).
    """
    params = BacktestParams.from_config()
    overrides = {
        name: value
        for name, value in (("hold_bars", hold_bars), ("stop_pct", stop_pct), ("take_pct", take_pct))
        if value is not None
    }
    if overrides:
        params = replace(params, **overrides)

    return BacktestSimulator(params, analysis_params).run(candles, naive=naive)
