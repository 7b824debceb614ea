"""
Business Logic Layer - Swing Signal Scanner
===========================================
Contiene la lógica de análisis central del sistema:
- Modelos de dominio (velas, resultados, operaciones)
- Detección de patrones y composición de señales (signal_composer)
- Simulación histórica (backtest)
- Memoria de alertas por flanco (alert_state)

Esta capa es independiente de los servicios de infraestructura.
Los submódulos se importan directamente (src.logic.signal_composer, ...)
porque src.utils.indicators depende de src.logic.models.
"""

from .models import (
    AnalysisParams,
    BacktestParams,
    BacktestReport,
    Candle,
    DetectionResult,
    ExitReason,
    IndicatorSeries,
    InsufficientData,
    InvalidCandleDataError,
    Trade,
)

__all__ = [
    "AnalysisParams",
    "BacktestParams",
    "BacktestReport",
    "Candle",
    "DetectionResult",
    "ExitReason",
    "IndicatorSeries",
    "InsufficientData",
    "InvalidCandleDataError",
    "Trade",
]
