"""
Market Data Service - Yahoo Finance Hourly Candles
==================================================
Servicio para solicitar velas horarias a la API de charts de Yahoo Finance
mediante HTTP (aiohttp).

Si la descarga o el parseo fallan, genera velas sintéticas con tendencia
bajista leve para que el resto del pipeline siga funcionando (modo demo).

Author: Swing Signal Scanner Team
"""

import asyncio
import math
import time
from typing import Any, Dict, List, Optional

import aiohttp
import numpy as np

from config import Config
from src.logic.models import Candle
from src.services.base_market_data_service import CandleFeed
from src.utils.logger import get_logger


logger = get_logger(__name__)

HOUR_MS = 3_600_000

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "application/json",
}


class MarketDataError(Exception):
    """Respuesta del proveedor sin datos utilizables."""


# =============================================================================
# PARSING
# =============================================================================

def _quote_value(quote: Dict[str, Any], key: str, index: int) -> Optional[float]:
    values = quote.get(key) or []
    if index >= len(values) or values[index] is None:
        return None
    value = float(values[index])
    return None if math.isnan(value) else value


def _epoch_ms(ts: Any) -> Optional[int]:
    """Timestamp de Yahoo (segundos) a milisegundos; None si es nulo o no numérico."""
    try:
        seconds = float(ts)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(seconds) else int(seconds) * 1000


def parse_chart_payload(payload: Dict[str, Any]) -> List[Candle]:
    """
    Convierte la respuesta de /v8/finance/chart en velas.

    Descarta las filas con timestamp u open/high/low/close nulos o NaN y
    las que no avanzan en el tiempo (Yahoo repite a veces la vela en formación).

    Args:
        payload: JSON decodificado de la respuesta

    Returns:
        List[Candle]: Velas ordenadas, timestamp en milisegundos

    Raises:
        MarketDataError: Si la respuesta no contiene resultados o su
            estructura no es la esperada
    """
    try:
        results = ((payload or {}).get("chart") or {}).get("result") or []
        if not results:
            raise MarketDataError("no data")

        result = results[0]
        timestamps = result.get("timestamp") or []
        quotes = (result.get("indicators") or {}).get("quote") or [{}]
        quote = quotes[0] or {}
    except (AttributeError, KeyError, IndexError, TypeError) as e:
        raise MarketDataError(f"malformed chart payload: {e}") from e

    candles: List[Candle] = []
    for i, ts in enumerate(timestamps):
        timestamp = _epoch_ms(ts)
        if timestamp is None:
            continue

        open_price = _quote_value(quote, "open", i)
        high = _quote_value(quote, "high", i)
        low = _quote_value(quote, "low", i)
        close = _quote_value(quote, "close", i)

        if open_price is None or high is None or low is None or close is None:
            continue

        if candles and timestamp <= candles[-1].timestamp:
            continue

        candles.append(Candle(
            timestamp=timestamp,
            open=open_price,
            high=high,
            low=low,
            close=close,
            volume=_quote_value(quote, "volume", i) or 0.0,
        ))

    return candles


def calculate_change_pct(candles: List[Candle]) -> float:
    """Variación porcentual entre los dos últimos cierres (0.0 si no hay dos)."""
    if len(candles) < 2 or candles[-2].close == 0:
        return 0.0
    prev_close = candles[-2].close
    return (candles[-1].close - prev_close) / prev_close * 100


# =============================================================================
# SYNTHETIC DATA
# =============================================================================

def generate_mock_candles(
    ticker: str,
    count: int = 120,
    seed: Optional[int] = None,
    end_ms: Optional[int] = None
) -> List[Candle]:
    """
    Genera velas horarias sintéticas con deriva bajista (-0.2% por vela).

    El precio base depende de la primera letra del ticker para que cada
    instrumento tenga una escala distinta.

    Args:
        ticker: Símbolo del instrumento
        count: Número de velas
        seed: Semilla del generador (None = aleatorio)
        end_ms: Timestamp de referencia (default: ahora)

    Returns:
        List[Candle]: Velas ordenadas, la última una hora antes de end_ms
    """
    if not ticker:
        raise ValueError("ticker must not be empty")

    rng = np.random.default_rng(seed)
    end_ms = end_ms if end_ms is not None else int(time.time() * 1000)

    price = 100 + (ord(ticker[0]) * 3.7) % 400
    trend = -0.002

    candles: List[Candle] = []
    for i in range(count):
        noise = (rng.random() - 0.5) * price * 0.02
        price = price * (1 + trend) + noise
        bar_range = price * 0.01

        open_price = price + (rng.random() - 0.5) * bar_range
        close = price + (rng.random() - 0.5) * bar_range
        high = max(open_price, close) + rng.random() * bar_range
        low = min(open_price, close) - rng.random() * bar_range

        candles.append(Candle(
            timestamp=end_ms - (count - i) * HOUR_MS,
            open=float(open_price),
            high=float(high),
            low=float(low),
            close=float(close),
            volume=float(rng.integers(0, 5_000_000)),
        ))

    return candles


# =============================================================================
# YAHOO SERVICE
# =============================================================================

class YahooChartService:
    """
    Proveedor de velas horarias basado en la API pública de Yahoo Finance.

    Responsabilidades:
    - Solicitar las velas del rango configurado (default 10 días, 1h)
    - Filtrar filas incompletas
    - Sustituir por datos sintéticos si la descarga falla
    """

    def __init__(self, session: Optional[aiohttp.ClientSession] = None):
        self.session = session
        self._owns_session = session is None
        self.base_url = Config.MARKET_DATA.base_url.rstrip("/")

    async def start(self) -> None:
        """Crea la sesión HTTP si no fue inyectada."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(headers=DEFAULT_HEADERS)
            self._owns_session = True
        logger.info("✅ Market Data Service iniciado")

    async def stop(self) -> None:
        """Cierra la sesión HTTP propia."""
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()
        logger.info("✅ Market Data Service detenido")

    def build_url(self, ticker: str) -> str:
        return (
            f"{self.base_url}/v8/finance/chart/{ticker}"
            f"?interval={Config.MARKET_DATA.interval}&range={Config.MARKET_DATA.range}"
        )

    async def fetch_candles(self, ticker: str) -> CandleFeed:
        """
        Obtiene las velas de un ticker, con fallback a datos sintéticos.

        Args:
            ticker: Símbolo (ej: "AAPL")

        Returns:
            CandleFeed con source="live" o source="demo"
        """
        try:
            candles = await self._fetch_live(ticker)
            if not candles:
                raise MarketDataError("empty candle list")
        except (
            aiohttp.ClientError,
            asyncio.TimeoutError,
            MarketDataError,
            ValueError,
            TypeError,
            AttributeError,
        ) as e:
            logger.warning(
                f"⚠️  {ticker}: datos en vivo no disponibles ({type(e).__name__}: {e}). "
                f"Usando velas sintéticas."
            )
            candles = generate_mock_candles(ticker, Config.MARKET_DATA.mock_candles)
            return CandleFeed(
                ticker=ticker,
                candles=candles,
                price=None,
                change_pct=0.0,
                source="demo",
            )

        logger.debug(f"📥 {ticker}: {len(candles)} velas recibidas")
        return CandleFeed(
            ticker=ticker,
            candles=candles,
            price=candles[-1].close,
            change_pct=calculate_change_pct(candles),
            source="live",
        )

    async def _fetch_live(self, ticker: str) -> List[Candle]:
        if self.session is None or self.session.closed:
            await self.start()

        async with self.session.get(
            self.build_url(ticker),
            timeout=aiohttp.ClientTimeout(total=Config.MARKET_DATA.timeout)
        ) as response:
            if response.status != 200:
                raise MarketDataError(f"HTTP {response.status}")
            payload = await response.json(content_type=None)

        return parse_chart_payload(payload)
