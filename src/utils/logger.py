"""
Centralized Logging Module - Swing Signal Scanner
==================================================
Sistema de logging centralizado con formato estandarizado,
niveles de severidad y salida opcional a archivo.

NO usar print() en los módulos de servicios. Importar logger desde aquí.

Author: Swing Signal Scanner Team
"""

import logging
import sys
from pathlib import Path
from typing import Optional


# =============================================================================
# CONFIGURACIÓN DE COLORES PARA CONSOLA (ANSI Codes)
# =============================================================================

class LogColors:
    """Códigos ANSI para colorear logs en terminal."""
    RESET = "\033[0m"

    DEBUG = "\033[36m"      # Cyan
    INFO = "\033[32m"       # Green
    WARNING = "\033[33m"    # Yellow
    ERROR = "\033[31m"      # Red
    CRITICAL = "\033[35m\033[1m"  # Magenta Bold


_BASE_FORMAT = "%(levelname)-8s{reset} | %(asctime)s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# =============================================================================
# FORMATEADORES
# =============================================================================

class ColoredFormatter(logging.Formatter):
    """
    Formateador que añade colores a los logs en consola según el nivel.
    """

    LEVEL_COLORS = {
        logging.DEBUG: LogColors.DEBUG,
        logging.INFO: LogColors.INFO,
        logging.WARNING: LogColors.WARNING,
        logging.ERROR: LogColors.ERROR,
        logging.CRITICAL: LogColors.CRITICAL,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, "")
        log_fmt = color + _BASE_FORMAT.format(reset=LogColors.RESET if color else "")
        formatter = logging.Formatter(log_fmt, datefmt=_DATE_FORMAT)
        return formatter.format(record)


class FileFormatter(logging.Formatter):
    """Formateador para archivos sin colores ANSI."""

    def __init__(self):
        super().__init__(fmt=_BASE_FORMAT.format(reset=""), datefmt=_DATE_FORMAT)


# =============================================================================
# CONFIGURACIÓN DEL LOGGER
# =============================================================================

def setup_logger(
    name: str,
    level: str = "INFO",
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configura y retorna un logger con formato estandarizado.

    Args:
        name: Nombre del módulo (ej: "market_data_service")
        level: Nivel de log (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Ruta opcional del archivo de log

    Returns:
        logging.Logger: Logger configurado

    Example:
        >>> from src.utils.logger import setup_logger
        >>> logger = setup_logger(__name__)
        >>> logger.info("Scanner iniciado")
    """
    logger = logging.getLogger(name)

    # Evitar duplicar handlers si se llama múltiples veces
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(ColoredFormatter())
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(FileFormatter())
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Obtiene un logger configurado con el nivel y archivo definidos en Config.

    Args:
        name: Nombre del módulo

    Returns:
        logging.Logger: Logger configurado
    """
    # Importar aquí para evitar dependencia circular
    from config import Config
    return setup_logger(name, Config.LOG_LEVEL, Config.LOG_FILE)


# =============================================================================
# FUNCIONES DE UTILIDAD
# =============================================================================

def log_exception(logger: logging.Logger, message: str, exc: Exception) -> None:
    """
    Registra una excepción con contexto completo.

    Args:
        logger: Logger a utilizar
        message: Mensaje descriptivo del error
        exc: Excepción capturada

    Example:
        >>> try:
        ...     await service.fetch_candles("AAPL")
        ... except Exception as e:
        ...     log_exception(logger, "Failed to fetch candles", e)
    """
    logger.error(f"{message}: {type(exc).__name__}: {str(exc)}", exc_info=True)


def log_startup_banner(logger: logging.Logger, version: str, tickers: tuple) -> None:
    """
    Registra un banner de inicio con información del scanner.

    Args:
        logger: Logger a utilizar
        version: Versión del scanner
        tickers: Instrumentos monitoreados
    """
    banner = f"""
    ╔══════════════════════════════════════════════════════════════╗
    ║  Swing Signal Scanner v{version:<38}║
    ║  1H Downtrend Reversal Setups (RSI / MACD / Engulfing)       ║
    ╚══════════════════════════════════════════════════════════════╝
    """
    for line in banner.strip().split('\n'):
        logger.info(line)
    logger.info(f"📋 Watchlist: {', '.join(tickers)}")


def log_shutdown(logger: logging.Logger) -> None:
    """
    Registra el apagado limpio del sistema.

    Args:
        logger: Logger a utilizar
    """
    logger.info("=" * 60)
    logger.info("Graceful shutdown completed. All services stopped.")
    logger.info("=" * 60)
