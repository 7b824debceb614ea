"""
Swing Signal Scanner - Main Entry Point
=======================================
v0.1.0 - 1H Downtrend Reversal Setups

Este es el punto de entrada principal del scanner. Orquesta todos los servicios:
- Market Data Service (velas horarias de Yahoo Finance)
- Signal Composer (análisis stateless de cada ticker)
- Alert State (alertas por flanco)
- Notification Service (webhook + historial local)

Author: Swing Signal Scanner Team
"""

import asyncio
import signal
import sys
from typing import List, Optional, Sequence

from config import Config
from src.logic.alert_state import SignalContextRegistry, SignalTransition
from src.logic.models import DetectionResult, InvalidCandleDataError
from src.logic.signal_composer import analyze
from src.services import (
    AlertHistoryStorage,
    MarketDataService,
    NotificationService,
    YahooChartService,
)
from src.utils.logger import get_logger, log_exception, log_startup_banner, log_shutdown


logger = get_logger(__name__)


# =============================================================================
# ORCHESTRATOR
# =============================================================================

class SignalScanner:
    """
    Orquestador principal del scanner.

    Responsabilidades:
    - Inicializar y coordinar todos los servicios
    - Escanear la watchlist cada SCAN_INTERVAL_SECONDS
    - Emitir alertas solo cuando una condición se activa
    - Implementar graceful shutdown
    """

    def __init__(
        self,
        tickers: Optional[Sequence[str]] = None,
        market_data: Optional[MarketDataService] = None,
        notifications: Optional[NotificationService] = None
    ):
        """Inicializa el scanner y sus servicios (inyectables para tests)."""
        self.tickers = tuple(tickers) if tickers is not None else Config.SCANNER.tickers
        self.market_data = market_data
        self.notifications = notifications
        self.registry = SignalContextRegistry()

        self.is_running: bool = False
        self.shutdown_event: asyncio.Event = asyncio.Event()

    async def initialize(self) -> None:
        """
        Inicializa todos los servicios con inyección de dependencias.
        """
        logger.info("🔧 Initializing services...")

        if self.market_data is None:
            self.market_data = YahooChartService()
        await self.market_data.start()

        if self.notifications is None:
            self.notifications = NotificationService(history=AlertHistoryStorage())
        await self.notifications.start()

        logger.info("✅ All services initialized successfully")

    async def start(self) -> None:
        """
        Inicia el scanner y ejecuta el ciclo de escaneo hasta el apagado.
        """
        self.is_running = True

        log_startup_banner(logger, version=Config.VERSION, tickers=self.tickers)

        try:
            Config.validate_all()
            logger.info("✅ Configuration validated")
        except ValueError as e:
            logger.critical(f"❌ Configuration error: {e}")
            sys.exit(1)

        await self.initialize()
        self._register_signal_handlers()

        logger.info(
            f"🚀 Scanner started | Intervalo: {Config.SCANNER.scan_interval_seconds}s | "
            f"RSI={Config.INDICATORS.RSI_PERIOD} | "
            f"MACD={Config.INDICATORS.MACD_FAST}/{Config.INDICATORS.MACD_SLOW}/{Config.INDICATORS.MACD_SIGNAL}"
        )

        while self.is_running:
            await self.scan_once()
            try:
                await asyncio.wait_for(
                    self.shutdown_event.wait(),
                    timeout=Config.SCANNER.scan_interval_seconds
                )
            except asyncio.TimeoutError:
                continue

    async def scan_once(self) -> List[SignalTransition]:
        """
        Escanea todos los tickers una vez.

        Returns:
            Alertas emitidas en esta pasada
        """
        transitions: List[SignalTransition] = []
        for ticker in self.tickers:
            try:
                transition = await self.process_ticker(ticker)
            except Exception as e:
                log_exception(logger, f"{ticker}: error en el pipeline, ticker omitido", e)
                continue
            if transition:
                transitions.append(transition)

        logger.info(f"🔍 Escaneo completado | Tickers={len(self.tickers)} | Alertas={len(transitions)}")
        return transitions

    async def process_ticker(self, ticker: str) -> Optional[SignalTransition]:
        """
        Pipeline de un ticker: velas -> análisis -> transición -> alerta.
        """
        feed = await self.market_data.fetch_candles(ticker)

        try:
            result = analyze(feed.candles)
        except InvalidCandleDataError as e:
            log_exception(logger, f"{ticker}: velas inválidas, análisis omitido", e)
            return None

        if isinstance(result, DetectionResult):
            logger.debug(
                f"📈 {ticker} [{feed.source}] | {result.flags()} | "
                f"RSI={result.last_rsi} | Hist={result.last_macd_histogram}"
            )
        else:
            logger.debug(f"⏳ {ticker}: {result.available}/{result.required} velas")

        price = feed.price if feed.price is not None else (feed.candles[-1].close if feed.candles else None)
        transition = self.registry.evaluate(ticker, result, price)

        if transition and self.notifications:
            await self.notifications.handle_transition(transition)

        return transition

    async def stop(self) -> None:
        """
        Detiene el scanner de forma limpia.
        """
        if not self.is_running:
            return

        logger.info("🛑 Initiating graceful shutdown...")
        self.is_running = False
        self.shutdown_event.set()

        # Detener servicios en orden inverso
        if self.notifications:
            await self.notifications.stop()

        if self.market_data:
            await self.market_data.stop()

        log_shutdown(logger)

    def _register_signal_handlers(self) -> None:
        """
        Registra handlers para señales de sistema (SIGINT, SIGTERM).
        """
        def handle_signal(sig):
            logger.info(f"⚠️  Received signal {sig}. Initiating shutdown...")
            asyncio.create_task(self.stop())

        try:
            loop = asyncio.get_running_loop()
            loop.add_signal_handler(signal.SIGINT, lambda: handle_signal("SIGINT"))
            loop.add_signal_handler(signal.SIGTERM, lambda: handle_signal("SIGTERM"))
        except NotImplementedError:
            # Windows no soporta add_signal_handler
            pass


# =============================================================================
# ENTRY POINT
# =============================================================================

async def main() -> None:
    """
    Función principal asíncrona.
    """
    scanner = SignalScanner()

    try:
        await scanner.start()
    except KeyboardInterrupt:
        logger.info("⚠️  Keyboard interrupt received")
    except Exception as e:
        logger.critical(f"❌ Fatal error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        await scanner.stop()


if __name__ == "__main__":
    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logger.critical(f"❌ Fatal error in main: {e}", exc_info=True)
        sys.exit(1)
