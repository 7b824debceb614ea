"""
Configuration Module - Swing Signal Scanner v0.1.0
===================================================
Gestiona la carga de variables de entorno, los parámetros de los
indicadores técnicos, del backtest y de los servicios auxiliares
(datos de mercado, notificaciones, historial de alertas).

Author: Swing Signal Scanner Team
"""

import os
from typing import List, Optional
from dataclasses import dataclass
from dotenv import load_dotenv

# Cargar variables de entorno desde .env
load_dotenv()


# =============================================================================
# DATA CLASSES PARA CONFIGURACIÓN ESTRUCTURADA
# =============================================================================

@dataclass(frozen=True)
class IndicatorConfig:
    """
    Parámetros de indicadores y detectores de patrones.

    Valores por defecto pensados para velas de 1 hora.
    """
    RSI_PERIOD: int = 14
    MACD_FAST: int = 12
    MACD_SLOW: int = 26
    MACD_SIGNAL: int = 9
    TREND_SMA_PERIOD: int = 20

    # Detectores
    DOWNTREND_MIN_CANDLES: int = 25
    DIVERGENCE_WINDOW: int = 30  # Velas hacia atrás para buscar mínimos
    SWING_HALF_WIDTH: int = 2  # Velas a cada lado de un mínimo local
    MACD_CROSS_LOOKBACK: int = 5

    # Mínimo de velas para un análisis en vivo
    MIN_ANALYSIS_CANDLES: int = 30


@dataclass(frozen=True)
class BacktestConfig:
    """Parámetros del simulador histórico."""
    HOLD_BARS: int = 6  # Velas máximas en posición
    STOP_PCT: float = 0.02  # Stop loss (2%)
    TAKE_PCT: float = 0.04  # Take profit (4%)
    MIN_BACKTEST_CANDLES: int = 50
    START_INDEX: int = 30  # Primera vela evaluada


@dataclass(frozen=True)
class MarketDataConfig:
    """Configuración del proveedor de velas (Yahoo Finance chart API)."""
    base_url: str
    interval: str
    range: str
    timeout: float
    mock_candles: int  # Velas sintéticas si falla la descarga

    def validate(self) -> None:
        """Valida los parámetros del proveedor."""
        if not self.base_url:
            raise ValueError("MARKET_DATA_URL must not be empty")
        if self.mock_candles < 1:
            raise ValueError(f"MOCK_CANDLES must be >= 1, got {self.mock_candles}")


@dataclass(frozen=True)
class NotificationConfig:
    """Configuración del webhook de alertas (Slack compatible)."""
    webhook_url: str
    enable_notifications: bool  # Habilitar/deshabilitar envío HTTP
    history_file: str  # Archivo JSON con el historial de alertas
    history_limit: int  # Máximo de alertas guardadas

    def validate(self) -> None:
        """Valida que el historial tenga un límite razonable."""
        if self.history_limit < 1:
            raise ValueError(f"ALERT_HISTORY_LIMIT must be >= 1, got {self.history_limit}")


@dataclass(frozen=True)
class ScannerConfig:
    """Configuración del ciclo de escaneo periódico."""
    tickers: tuple
    scan_interval_seconds: int

    def validate(self) -> None:
        """Valida la lista de tickers y el intervalo."""
        if not self.tickers:
            raise ValueError("TICKERS must contain at least one symbol")
        if self.scan_interval_seconds < 1:
            raise ValueError(
                f"SCAN_INTERVAL_SECONDS must be >= 1, got {self.scan_interval_seconds}"
            )


def _parse_tickers(raw: str) -> tuple:
    """Convierte "AAPL, tsla" en ("AAPL", "TSLA") sin duplicados."""
    tickers: List[str] = []
    for item in raw.split(","):
        ticker = item.strip().upper()
        if ticker and ticker not in tickers:
            tickers.append(ticker)
    return tuple(tickers)


# =============================================================================
# CONFIGURACIÓN PRINCIPAL
# =============================================================================

class Config:
    """Clase Singleton para acceso global a la configuración."""

    VERSION: str = "0.1.0"

    INDICATORS = IndicatorConfig(
        RSI_PERIOD=int(os.getenv("RSI_PERIOD", "14")),
        MACD_FAST=int(os.getenv("MACD_FAST", "12")),
        MACD_SLOW=int(os.getenv("MACD_SLOW", "26")),
        MACD_SIGNAL=int(os.getenv("MACD_SIGNAL", "9")),
        TREND_SMA_PERIOD=int(os.getenv("TREND_SMA_PERIOD", "20")),
        DIVERGENCE_WINDOW=int(os.getenv("DIVERGENCE_WINDOW", "30")),
        SWING_HALF_WIDTH=int(os.getenv("SWING_HALF_WIDTH", "2")),
        MACD_CROSS_LOOKBACK=int(os.getenv("MACD_CROSS_LOOKBACK", "5")),
        MIN_ANALYSIS_CANDLES=int(os.getenv("MIN_ANALYSIS_CANDLES", "30")),
    )

    BACKTEST = BacktestConfig(
        HOLD_BARS=int(os.getenv("BACKTEST_HOLD_BARS", "6")),
        STOP_PCT=float(os.getenv("BACKTEST_STOP_PCT", "0.02")),
        TAKE_PCT=float(os.getenv("BACKTEST_TAKE_PCT", "0.04")),
        MIN_BACKTEST_CANDLES=int(os.getenv("MIN_BACKTEST_CANDLES", "50")),
    )

    MARKET_DATA = MarketDataConfig(
        base_url=os.getenv("MARKET_DATA_URL", "https://query1.finance.yahoo.com"),
        interval=os.getenv("MARKET_DATA_INTERVAL", "1h"),
        range=os.getenv("MARKET_DATA_RANGE", "10d"),
        timeout=float(os.getenv("MARKET_DATA_TIMEOUT", "15")),
        mock_candles=int(os.getenv("MOCK_CANDLES", "120")),
    )

    NOTIFICATIONS = NotificationConfig(
        webhook_url=os.getenv("SLACK_WEBHOOK_URL", ""),
        enable_notifications=os.getenv("ENABLE_NOTIFICATIONS", "true").lower() == "true",
        history_file=os.getenv("ALERT_HISTORY_FILE", "data/alert_history.json"),
        history_limit=int(os.getenv("ALERT_HISTORY_LIMIT", "200")),
    )

    SCANNER = ScannerConfig(
        tickers=_parse_tickers(os.getenv("TICKERS", "AAPL,TSLA,NVDA,MSFT")),
        scan_interval_seconds=int(os.getenv("SCAN_INTERVAL_SECONDS", "300")),
    )

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE") or None

    @classmethod
    def validate_all(cls) -> None:
        """
        Valida toda la configuración crítica antes de iniciar el scanner.

        Raises:
            ValueError: Si alguna configuración crítica falta o es inválida
        """
        cls.MARKET_DATA.validate()
        cls.NOTIFICATIONS.validate()
        cls.SCANNER.validate()

        ind = cls.INDICATORS
        for name in ("RSI_PERIOD", "MACD_FAST", "MACD_SLOW", "MACD_SIGNAL", "TREND_SMA_PERIOD"):
            if getattr(ind, name) <= 0:
                raise ValueError(f"{name} must be > 0, got {getattr(ind, name)}")

        if ind.MACD_FAST >= ind.MACD_SLOW:
            raise ValueError(
                f"MACD_FAST ({ind.MACD_FAST}) must be lower than MACD_SLOW ({ind.MACD_SLOW})"
            )

        if ind.SWING_HALF_WIDTH < 1 or ind.MACD_CROSS_LOOKBACK < 1:
            raise ValueError("SWING_HALF_WIDTH and MACD_CROSS_LOOKBACK must be >= 1")

        bt = cls.BACKTEST
        if bt.HOLD_BARS < 1:
            raise ValueError(f"BACKTEST_HOLD_BARS must be >= 1, got {bt.HOLD_BARS}")

        for name in ("STOP_PCT", "TAKE_PCT"):
            value = getattr(bt, name)
            if not 0 < value < 1:
                raise ValueError(f"BACKTEST_{name} must be in (0, 1), got {value}")

        if bt.MIN_BACKTEST_CANDLES < ind.MIN_ANALYSIS_CANDLES:
            raise ValueError(
                f"MIN_BACKTEST_CANDLES ({bt.MIN_BACKTEST_CANDLES}) must be >= "
                f"MIN_ANALYSIS_CANDLES ({ind.MIN_ANALYSIS_CANDLES})"
            )


# =============================================================================
# VALIDACIÓN AL IMPORTAR
# =============================================================================

# Validar configuración automáticamente cuando se importa el módulo
try:
    Config.validate_all()
except ValueError as e:
    # No lanzar excepción aquí para permitir imports de testing
    # La validación se hará explícitamente en main.py
    print(f"⚠️  Configuration Warning: {e}")
