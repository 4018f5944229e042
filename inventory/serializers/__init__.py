from .alerts import StockAlertSerializer
from .catalog import (
    ProductInputSerializer,
    ProductSerializer,
    ProductSummarySerializer,
    StockUpdateSerializer,
    ThresholdUpdateSerializer,
)

__all__ = [
    "ProductSerializer",
    "ProductSummarySerializer",
    "ProductInputSerializer",
    "StockUpdateSerializer",
    "ThresholdUpdateSerializer",
    "StockAlertSerializer",
]
