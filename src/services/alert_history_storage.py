"""
Alert History Storage Service
=============================
Historial persistente de alertas emitidas por el scanner.

Las alertas se guardan en un único archivo JSON como un array ordenado
de la más reciente a la más antigua, con un máximo configurable
(default 200). La E/S de disco se ejecuta en un thread separado.

Formato de cada entrada:
    {"id": 7, "ticker": "AAPL", "type": "cond2", "message": "...",
     "time": "2024-05-01T14:00:00", "price": 187.2}

Author: Swing Signal Scanner Team
"""

import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from config import Config
from src.logic.alert_state import SignalTransition
from src.utils.logger import get_logger, log_exception


logger = get_logger(__name__)


class AlertHistoryStorage:
    """
    Servicio para almacenar el historial de alertas localmente.

    Responsabilidades:
    - Añadir alertas al inicio del historial
    - Recortar el historial al límite configurado
    - Asignar ids crecientes
    - Recuperarse de un archivo JSON corrupto
    """

    def __init__(self, history_file: Optional[str] = None, limit: Optional[int] = None):
        """
        Inicializa el almacenamiento.

        Args:
            history_file: Ruta del JSON (default: Config.NOTIFICATIONS.history_file)
            limit: Máximo de alertas guardadas (default: Config.NOTIFICATIONS.history_limit)
        """
        self.history_file = Path(history_file or Config.NOTIFICATIONS.history_file)
        self.limit = limit if limit is not None else Config.NOTIFICATIONS.history_limit
        if self.limit < 1:
            raise ValueError(f"limit must be >= 1, got {self.limit}")

        self._lock = asyncio.Lock()
        self._ensure_history_file()

        existing = self._sync_read_history()
        self._next_id = max((int(entry.get("id", 0)) for entry in existing), default=0) + 1

        logger.info(
            f"💾 Alert History Storage inicializado | "
            f"Archivo: {self.history_file} | Alertas: {len(existing)}"
        )

    def _ensure_history_file(self) -> None:
        """Crea el directorio y el archivo JSON vacío si no existen."""
        try:
            self.history_file.parent.mkdir(parents=True, exist_ok=True)
            if not self.history_file.exists():
                self._sync_write_history([])
                logger.debug(f"✅ Archivo de historial creado: {self.history_file}")
        except OSError as e:
            log_exception(logger, f"Error creando archivo de historial {self.history_file}", e)
            raise

    async def record(self, transition: SignalTransition) -> Dict[str, Any]:
        """
        Guarda una alerta al inicio del historial.

        Args:
            transition: Alerta generada por el gestor de estado

        Returns:
            Dict: La entrada guardada
        """
        async with self._lock:
            history = await asyncio.to_thread(self._sync_read_history)

            entry = {
                "id": self._next_id,
                "ticker": transition.ticker,
                "type": transition.alert_type.value,
                "message": transition.message,
                "time": datetime.now().isoformat(timespec="seconds"),
                "price": transition.price,
            }
            self._next_id += 1

            history.insert(0, entry)
            del history[self.limit:]

            await asyncio.to_thread(self._sync_write_history, history)

        logger.debug(f"✅ Alerta #{entry['id']} guardada (total: {len(history)})")
        return entry

    async def get_history(self) -> List[Dict[str, Any]]:
        """Devuelve el historial completo, de la más reciente a la más antigua."""
        return await asyncio.to_thread(self._sync_read_history)

    def _sync_read_history(self) -> List[Dict[str, Any]]:
        """
        Lectura síncrona del archivo JSON.

        Returns:
            Lista de alertas; vacía si el archivo no existe o está corrupto
        """
        try:
            with open(self.history_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except json.JSONDecodeError:
            logger.warning(f"Archivo JSON corrupto, reiniciando: {self.history_file}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Formato de historial inválido, reiniciando: {self.history_file}")
            return []
        return data

    def _sync_write_history(self, history: List[Dict[str, Any]]) -> None:
        with open(self.history_file, "w", encoding="utf-8") as f:
            json.dump(history, f, indent=2, ensure_ascii=False)
