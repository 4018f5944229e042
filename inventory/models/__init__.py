from .catalog import DEFAULT_MIN_STOCK_LEVEL, MAX_STOCK_COUNTER, Product
from .alerts import StockAlert

__all__ = [
    "DEFAULT_MIN_STOCK_LEVEL",
    "MAX_STOCK_COUNTER",
    "Product",
    "StockAlert",
]
