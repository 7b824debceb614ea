"""
Alert State Management
======================
Memoria de señales por instrumento para alertas por flanco (edge-triggered).

El core de análisis es stateless: devuelve el estado instantáneo. Este
módulo compara ese estado con el observado en la evaluación anterior del
mismo instrumento y solo emite una alerta cuando una condición pasa de
False a True.

Prioridad: si cond2 sube, se emite ENTRY; si no, y cond1 sube, WATCH.

Author: Swing Signal Scanner Team
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from src.logic.models import AnalysisResult, DetectionResult


class AlertType(str, Enum):
    WATCH = "cond1"  # Setup completo, esperando envolvente
    ENTRY = "cond2"  # Envolvente confirmada


ALERT_MESSAGES = {
    AlertType.WATCH: "Condición 1 cumplida — esperando vela envolvente alcista",
    AlertType.ENTRY: "Envolvente alcista confirmada. Evaluar entrada",
}


@dataclass
class InstrumentSignalContext:
    """Último estado observado de las condiciones de un instrumento."""
    last_cond1: bool = False
    last_cond2: bool = False


@dataclass(frozen=True)
class SignalTransition:
    """Alerta generada por una transición False -> True."""
    ticker: str
    alert_type: AlertType
    message: str
    price: Optional[float] = None


def evaluate_transition(
    ticker: str,
    context: InstrumentSignalContext,
    result: AnalysisResult,
    price: Optional[float] = None
) -> Optional[SignalTransition]:
    """
    Compara el resultado con el contexto y actualiza el contexto.

    Args:
        ticker: Instrumento evaluado
        context: Memoria del instrumento (se modifica in-place)
        result: Resultado instantáneo de `analyze`
        price: Precio a incluir en la alerta (opcional)

    Returns:
        SignalTransition si una condición acaba de activarse, None si no.
        Con InsufficientData no hay alerta y el contexto no cambia.
    """
    if not isinstance(result, DetectionResult):
        return None

    transition = None
    if result.cond2 and not context.last_cond2:
        transition = SignalTransition(ticker, AlertType.ENTRY, ALERT_MESSAGES[AlertType.ENTRY], price)
    elif result.cond1 and not context.last_cond1:
        transition = SignalTransition(ticker, AlertType.WATCH, ALERT_MESSAGES[AlertType.WATCH], price)

    context.last_cond1 = result.cond1
    context.last_cond2 = result.cond2

    return transition


@dataclass
class SignalContextRegistry:
    """Contextos de señal indexados por ticker."""
    contexts: Dict[str, InstrumentSignalContext] = field(default_factory=dict)

    def get(self, ticker: str) -> InstrumentSignalContext:
        """Obtiene (o crea) el contexto del ticker."""
        return self.contexts.setdefault(ticker, InstrumentSignalContext())

    def evaluate(
        self,
        ticker: str,
        result: AnalysisResult,
        price: Optional[float] = None
    ) -> Optional[SignalTransition]:
        return evaluate_transition(ticker, self.get(ticker), result, price)

    def forget(self, ticker: str) -> None:
        """Descarta la memoria de un ticker eliminado del watchlist."""
        self.contexts.pop(ticker, None)
