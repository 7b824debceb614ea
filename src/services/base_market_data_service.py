"""
Base Market Data Service Protocol
===================================
Define la interfaz común que deben implementar los proveedores de velas
(Yahoo Finance, datos sintéticos de prueba, etc.).

Author: Swing Signal Scanner Team
"""

from dataclasses import dataclass
from typing import List, Optional, Protocol

from src.logic.models import Candle


@dataclass(frozen=True)
class CandleFeed:
    """
    Velas de un instrumento listas para el análisis.

    source:
        "live" si vienen del proveedor, "demo" si son sintéticas
        (fallback ante un error de descarga).
    """
    ticker: str
    candles: List[Candle]
    price: Optional[float]
    change_pct: float
    source: str

    @property
    def is_live(self) -> bool:
        return self.source == "live"


class MarketDataService(Protocol):
    """
    Protocolo que define la interfaz estándar para proveedores de velas.
    """

    async def start(self) -> None:
        """Abre los recursos de red del proveedor."""
        ...

    async def stop(self) -> None:
        """Cierra la conexión con el proveedor y libera recursos."""
        ...

    async def fetch_candles(self, ticker: str) -> CandleFeed:
        """
        Obtiene las velas horarias recientes del instrumento.

        Las velas vienen ordenadas, con timestamps estrictamente crecientes
        y sin campos nulos. Nunca lanza por errores de red: en ese caso
        devuelve velas sintéticas con source="demo".
        """
        ...
