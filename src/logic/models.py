"""
Domain Models - Candles, Indicators, Detections & Backtest Results
===================================================================
Estructuras de datos inmutables que circulan por el pipeline de análisis:

    velas → indicadores → detectores → señales compuestas
          → (vivo: DetectionResult | histórico: BacktestReport)

Los resultados se modelan como variante etiquetada: cada operación
devuelve el payload completo o un marcador InsufficientData, nunca None.

Author: Swing Signal Scanner Team
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Literal, Optional, Tuple, Union

import pandas as pd

from config import Config


# =============================================================================
# ERRORES
# =============================================================================

class InvalidCandleDataError(ValueError):
    """
    Precondición violada: secuencia vacía, valores no numéricos
    o timestamps no crecientes.

    Es distinto de InsufficientData: indica un error del llamador,
    no falta de historia.
    """


# =============================================================================
# PARÁMETROS
# =============================================================================

@dataclass(frozen=True)
class AnalysisParams:
    """Parámetros de indicadores y detectores (defaults para velas de 1h)."""
    rsi_period: int = 14
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    trend_sma_period: int = 20
    downtrend_min_candles: int = 25
    trend_slope_offset: int = 6  # Posición desde el final: sma[-6]
    divergence_window: int = 30
    swing_half_width: int = 2
    macd_cross_lookback: int = 5
    min_candles: int = 30

    @classmethod
    def from_config(cls) -> "AnalysisParams":
        ind = Config.INDICATORS
        return cls(
            rsi_period=ind.RSI_PERIOD,
            macd_fast=ind.MACD_FAST,
            macd_slow=ind.MACD_SLOW,
            macd_signal=ind.MACD_SIGNAL,
            trend_sma_period=ind.TREND_SMA_PERIOD,
            downtrend_min_candles=ind.DOWNTREND_MIN_CANDLES,
            divergence_window=ind.DIVERGENCE_WINDOW,
            swing_half_width=ind.SWING_HALF_WIDTH,
            macd_cross_lookback=ind.MACD_CROSS_LOOKBACK,
            min_candles=ind.MIN_ANALYSIS_CANDLES,
        )

    def validate(self) -> None:
        """
        Raises:
            ValueError: Si algún periodo o ventana no es positivo
        """
        for name, value in self.__dict__.items():
            if value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")


@dataclass(frozen=True)
class BacktestParams:
    """Parámetros económicos y de recorrido del backtest."""
    hold_bars: int = 6
    stop_pct: float = 0.02
    take_pct: float = 0.04
    min_candles: int = 50
    start_index: int = 30

    @classmethod
    def from_config(cls) -> "BacktestParams":
        bt = Config.BACKTEST
        return cls(
            hold_bars=bt.HOLD_BARS,
            stop_pct=bt.STOP_PCT,
            take_pct=bt.TAKE_PCT,
            min_candles=bt.MIN_BACKTEST_CANDLES,
            start_index=bt.START_INDEX,
        )

    def validate(self) -> None:
        """
        Raises:
            ValueError: Si hold_bars < 1 o algún porcentaje está fuera de (0, 1)
        """
        if self.hold_bars < 1:
            raise ValueError(f"hold_bars must be >= 1, got {self.hold_bars}")
        if not 0 < self.stop_pct < 1:
            raise ValueError(f"stop_pct must be in (0, 1), got {self.stop_pct}")
        if not 0 < self.take_pct < 1:
            raise ValueError(f"take_pct must be in (0, 1), got {self.take_pct}")
        if self.start_index < 1 or self.min_candles < 1:
            raise ValueError("start_index and min_candles must be >= 1")


# =============================================================================
# VELAS
# =============================================================================

@dataclass(frozen=True)
class Candle:
    """Vela OHLCV. `timestamp` en milisegundos epoch."""
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float


# =============================================================================
# INDICADORES
# =============================================================================

@dataclass(frozen=True)
class IndicatorSeries:
    """
    Series de indicadores alineadas índice a índice con las velas.

    Los valores de calentamiento (historia insuficiente) son NaN.
    """
    ema_fast: pd.Series
    ema_slow: pd.Series
    rsi: pd.Series
    macd_line: pd.Series
    macd_signal: pd.Series
    macd_histogram: pd.Series
    sma_trend: pd.Series

    def __len__(self) -> int:
        return len(self.rsi)

    def to_frame(self) -> pd.DataFrame:
        """DataFrame con una columna por indicador (para gráficos)."""
        return pd.DataFrame({
            "ema_fast": self.ema_fast,
            "ema_slow": self.ema_slow,
            "rsi": self.rsi,
            "macd_line": self.macd_line,
            "macd_signal": self.macd_signal,
            "macd_histogram": self.macd_histogram,
            "sma_trend": self.sma_trend,
        })


# =============================================================================
# RESULTADOS DE ANÁLISIS
# =============================================================================

@dataclass(frozen=True)
class InsufficientData:
    """Marcador explícito de historia insuficiente."""
    required: int
    available: int
    reason: str = "insufficient data"
    status: Literal["insufficient"] = "insufficient"


@dataclass(frozen=True)
class DetectionResult:
    """Estado instantáneo de los detectores en la última vela."""
    down: bool
    rsi_divergence: bool
    macd_bullish: bool
    engulfing: bool
    cond1: bool
    cond2: bool
    last_rsi: Optional[float]
    last_macd_histogram: Optional[float]
    indicators: IndicatorSeries = field(repr=False, compare=False)
    status: Literal["ok"] = "ok"

    def flags(self) -> Dict[str, bool]:
        """Booleanos de los detectores y condiciones compuestas."""
        return {
            "down": self.down,
            "rsi_divergence": self.rsi_divergence,
            "macd_bullish": self.macd_bullish,
            "engulfing": self.engulfing,
            "cond1": self.cond1,
            "cond2": self.cond2,
        }


AnalysisResult = Union[InsufficientData, DetectionResult]


# =============================================================================
# BACKTEST
# =============================================================================

class ExitReason(str, Enum):
    STOP_LOSS = "stop-loss"
    TAKE_PROFIT = "take-profit"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class Trade:
    """Operación hipotética. Stop y take quedan fijos al entrar."""
    entry_index: int
    entry_price: float
    stop_price: float
    take_price: float
    exit_price: float
    exit_offset: int
    exit_reason: ExitReason
    pnl_percent: float
    entry_timestamp: int

    def to_dict(self, decimals: Optional[int] = None) -> Dict[str, Any]:
        """
        Serializa la operación. El redondeo solo se aplica aquí.

        Args:
            decimals: Decimales para precios y PnL (None = precisión completa)
        """
        def _fmt(value: float) -> float:
            return round(value, decimals) if decimals is not None else value

        return {
            "entry_index": self.entry_index,
            "entry_timestamp": self.entry_timestamp,
            "entry_price": _fmt(self.entry_price),
            "stop_price": _fmt(self.stop_price),
            "take_price": _fmt(self.take_price),
            "exit_price": _fmt(self.exit_price),
            "exit_offset": self.exit_offset,
            "exit_reason": self.exit_reason.value,
            "pnl_percent": _fmt(self.pnl_percent),
        }


@dataclass(frozen=True)
class BacktestReport:
    """Resultado agregado del backtest."""
    trades: Tuple[Trade, ...]
    win_rate: float
    average_pnl: float
    total_pnl: float
    status: Literal["ok"] = "ok"

    @property
    def trade_count(self) -> int:
        return len(self.trades)

    def to_dict(self, decimals: Optional[int] = None) -> Dict[str, Any]:
        def _fmt(value: float) -> float:
            return round(value, decimals) if decimals is not None else value

        return {
            "trades": [t.to_dict(decimals) for t in self.trades],
            "trade_count": self.trade_count,
            "win_rate": _fmt(self.win_rate),
            "average_pnl": _fmt(self.average_pnl),
            "total_pnl": _fmt(self.total_pnl),
        }


BacktestOutcome = Union[InsufficientData, BacktestReport]
