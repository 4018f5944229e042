"""
Lecturas del inventario. Ninguna función de este módulo escribe.
"""
import uuid

from django.db.models import F, QuerySet

from .models import Product, StockAlert
from .services.alert_store import AlertStore
from .services.product_store import ProductStore


def _as_uuid(value):
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def all_products() -> QuerySet[Product]:
    return ProductStore.list()


def unresolved_alerts() -> QuerySet[StockAlert]:
    """Alertas ACTIVE con los datos actuales de su producto, más recientes primero."""
    return AlertStore.list_active()


def alerts_for_product(product_id) -> QuerySet[StockAlert]:
    """Historial completo (activas y resueltas) de un producto, más recientes primero."""
    pk = _as_uuid(product_id)
    if pk is None:
        return StockAlert.objects.none()
    return AlertStore.list_by_product(pk)


def all_alerts() -> QuerySet[StockAlert]:
    return AlertStore.list_all()


def low_stock_products() -> QuerySet[Product]:
    """
    Productos con cantidad menor o igual a su stock mínimo, de menor a mayor cantidad.

    Se calcula sobre los productos, sin mirar las alertas, con el mismo
    criterio que `threshold.should_alert`.
    """
    return (
        Product.objects.filter(quantity__lte=F('min_stock_level'))
        .order_by('quantity', '-created_at')
    )
