"""
Evaluación de umbrales de stock.

Funciones puras: no tocan la base de datos ni dependen de Django, de modo que
el servicio las puede invocar antes y después de cada escritura sin efectos
secundarios.
"""
from enum import Enum
from typing import Optional


class StockState(str, Enum):
    """Estado derivado de un producto. Nunca se persiste."""
    BELOW_THRESHOLD = "BELOW_THRESHOLD"
    OK = "OK"


class StockTransition(str, Enum):
    """Acción que requiere el almacén de alertas tras una escritura."""
    NONE = "NONE"
    OPEN = "OPEN"
    RESOLVE = "RESOLVE"


def should_alert(quantity: int, min_stock_level: int) -> bool:
    """Debe existir una alerta activa cuando la cantidad llega al umbral."""
    return quantity <= min_stock_level


def stock_state(quantity: int, min_stock_level: int) -> StockState:
    if should_alert(quantity, min_stock_level):
        return StockState.BELOW_THRESHOLD
    return StockState.OK


def transition(before: Optional[StockState], after: StockState) -> StockTransition:
    """
    Calcula la transición entre dos estados.

    `before` es None cuando el producto se acaba de crear: en ese caso se
    trata como OK, porque todavía no puede existir ninguna alerta.
    """
    previous = before or StockState.OK
    if previous == after:
        return StockTransition.NONE
    if after == StockState.BELOW_THRESHOLD:
        return StockTransition.OPEN
    return StockTransition.RESOLVE
