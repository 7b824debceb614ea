"""
Notification Service - Webhook Alert Delivery
=============================================
Gestiona el envío de alertas de señales a un webhook compatible con
Slack ({"text": "..."}) y su registro en el historial local.

Los errores de red se registran en el log y nunca se propagan: una
alerta fallida no debe detener el ciclo de escaneo.

Author: Swing Signal Scanner Team
"""

import asyncio
from typing import Optional

import aiohttp

from config import Config
from src.logic.alert_state import AlertType, SignalTransition
from src.services.alert_history_storage import AlertHistoryStorage
from src.utils.logger import get_logger, log_exception


logger = get_logger(__name__)

ALERT_ICONS = {
    AlertType.ENTRY: "🚀",
    AlertType.WATCH: "⚡",
}

ALERT_LABELS = {
    AlertType.ENTRY: "ENTRY",
    AlertType.WATCH: "WATCH",
}


def format_alert_text(transition: SignalTransition) -> str:
    """
    Formatea el texto de la alerta.

    Ejemplo:
        "[TradeSignal] 🚀 ENTRY AAPL $187.20 — Envolvente alcista confirmada..."

    El precio se redondea a 2 decimales solo aquí, al presentarlo.
    """
    icon = ALERT_ICONS[transition.alert_type]
    label = ALERT_LABELS[transition.alert_type]
    price = f" ${transition.price:.2f}" if transition.price is not None else ""
    return f"[TradeSignal] {icon} {label} {transition.ticker}{price} — {transition.message}"


class NotificationService:
    """
    Servicio de notificaciones de alertas.

    Responsabilidades:
    - Recibir transiciones del gestor de estado
    - Guardarlas en el historial local
    - Enviarlas al webhook vía HTTP si está configurado
    """

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        history: Optional[AlertHistoryStorage] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Inicializa el servicio.

        Args:
            webhook_url: URL del webhook (default: Config.NOTIFICATIONS.webhook_url)
            history: Almacenamiento del historial (opcional)
            session: Sesión HTTP inyectada (opcional, útil en tests)
        """
        self.webhook_url = webhook_url if webhook_url is not None else Config.NOTIFICATIONS.webhook_url
        self.enabled = Config.NOTIFICATIONS.enable_notifications and bool(self.webhook_url)
        self.history = history
        self.session = session
        self._owns_session = session is None

        logger.info(
            f"📱 Notification Service inicializado "
            f"(Webhook: {'✅ Configurado' if self.enabled else '❌ Deshabilitado'}, "
            f"Historial: {'✅ Habilitado' if history else '❌ Deshabilitado'})"
        )

    async def start(self) -> None:
        """Inicia la sesión HTTP."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        logger.info("✅ Notification Service iniciado")

    async def stop(self) -> None:
        """Detiene el servicio y cierra la sesión propia."""
        logger.info("🛑 Deteniendo Notification Service...")
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()
        logger.info("✅ Notification Service detenido")

    async def handle_transition(self, transition: SignalTransition) -> None:
        """
        Procesa una alerta: la guarda en el historial y la envía al webhook.

        Args:
            transition: Alerta generada por una transición False -> True
        """
        text = format_alert_text(transition)
        logger.info(f"🔔 {text}")

        if self.history:
            try:
                await self.history.record(transition)
            except OSError as e:
                log_exception(logger, "Error guardando alerta en el historial", e)

        await self.send_text(text)

    async def send_text(self, text: str) -> bool:
        """
        Envía un texto al webhook.

        Returns:
            bool: True si el webhook respondió 2xx
        """
        if not self.enabled:
            logger.debug("📵 Webhook deshabilitado. Alerta no enviada.")
            return False

        if not self.session:
            logger.error("❌ No se puede enviar alerta: Sesión HTTP no inicializada")
            return False

        try:
            async with self.session.post(
                self.webhook_url,
                json={"text": text},
                timeout=aiohttp.ClientTimeout(total=10)
            ) as response:
                if 200 <= response.status < 300:
                    logger.debug(f"✅ Webhook OK ({response.status})")
                    return True

                response_text = await response.text()
                logger.error(
                    f"❌ Webhook respondió {response.status} | Respuesta: {response_text[:200]}"
                )
                return False

        except asyncio.TimeoutError:
            logger.error("❌ Timeout en solicitud al webhook")
        except aiohttp.ClientError as e:
            log_exception(logger, "Webhook request failed", e)

        return False
