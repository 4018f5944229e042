from .alerts import StockAlertViewSet
from .catalog import ProductViewSet

__all__ = [
    "ProductViewSet",
    "StockAlertViewSet",
]
