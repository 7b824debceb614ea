"""
Backtest Service - On-Demand Historical Simulation
==================================================
Descarga las velas de un ticker y ejecuta el simulador histórico en un
thread separado (el cálculo es CPU-bound y bloquearía el event loop).

Single-flight por ticker: si ya hay un backtest en curso para un ticker,
las llamadas concurrentes esperan y reciben el mismo resultado.

Author: Swing Signal Scanner Team
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, Optional

from src.logic.backtest import BacktestSimulator
from src.logic.models import AnalysisParams, BacktestOutcome, BacktestParams
from src.services.base_market_data_service import MarketDataService
from src.utils.logger import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class BacktestRun:
    """Resultado de un backtest junto con el origen de los datos."""
    ticker: str
    source: str  # "live" o "demo"
    candle_count: int
    outcome: BacktestOutcome


class BacktestService:
    """
    Servicio de backtests bajo demanda.

    Responsabilidades:
    - Obtener las velas del proveedor
    - Ejecutar BacktestSimulator fuera del event loop
    - Evitar ejecuciones duplicadas del mismo ticker
    """

    def __init__(
        self,
        market_data: MarketDataService,
        params: Optional[BacktestParams] = None,
        analysis_params: Optional[AnalysisParams] = None
    ):
        self.market_data = market_data
        self.simulator = BacktestSimulator(params, analysis_params)
        self._in_flight: Dict[str, asyncio.Task] = {}

    async def run(self, ticker: str) -> BacktestRun:
        """
        Ejecuta (o se une a) el backtest de un ticker.

        Args:
            ticker: Símbolo del instrumento

        Returns:
            BacktestRun con el informe o el marcador de datos insuficientes
        """
        task = self._in_flight.get(ticker)
        if task is None:
            task = asyncio.create_task(self._run(ticker))
            self._in_flight[ticker] = task
            task.add_done_callback(lambda _: self._in_flight.pop(ticker, None))
        else:
            logger.debug(f"🔁 {ticker}: backtest en curso, esperando resultado compartido")

        return await asyncio.shield(task)

    def is_running(self, ticker: str) -> bool:
        return ticker in self._in_flight

    async def _run(self, ticker: str) -> BacktestRun:
        feed = await self.market_data.fetch_candles(ticker)
        logger.info(f"🧪 Backtest {ticker} | Velas={len(feed.candles)} | Fuente={feed.source}")

        outcome = await asyncio.to_thread(self.simulator.run, feed.candles)

        return BacktestRun(
            ticker=ticker,
            source=feed.source,
            candle_count=len(feed.candles),
            outcome=outcome,
        )
