"""
Módulo de servicios de inventario.
"""
from .alert_store import AlertStore
from .product_store import ProductStore
from .stock_alert_service import ReconcileReport, StockAlertService, StockUpdateResult
from .threshold import StockState, StockTransition, should_alert, stock_state, transition

__all__ = [
    'AlertStore',
    'ProductStore',
    'ReconcileReport',
    'StockAlertService',
    'StockUpdateResult',
    'StockState',
    'StockTransition',
    'should_alert',
    'stock_state',
    'transition',
]
