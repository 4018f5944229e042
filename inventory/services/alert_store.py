"""
Almacén de alertas de stock.

`open_alert` es la única vía de creación y debe llamarse dentro de la sección
crítica del producto (transacción con el producto bloqueado).
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from core.exceptions import ResourceNotFoundError

from ..models import Product, StockAlert

logger = logging.getLogger(__name__)


class AlertStore:
    @staticmethod
    def active_for(product: Product):
        return (
            StockAlert.objects.filter(product=product, status=StockAlert.Status.ACTIVE)
            .order_by('-created_at')
            .first()
        )

    @staticmethod
    def open_alert(product: Product):
        """
        Devuelve la alerta activa del producto o crea una nueva.

        Returns:
            tuple: (alerta, creada)
        """
        existing = AlertStore.active_for(product)
        if existing:
            return existing, False
        try:
            with transaction.atomic():
                alert = StockAlert.objects.create(
                    product=product,
                    status=StockAlert.Status.ACTIVE,
                    quantity_at_trigger=product.quantity,
                    threshold_at_trigger=product.min_stock_level,
                )
        except IntegrityError:
            # Otra escritura abrió la alerta primero (respaldo de la restricción parcial).
            existing = AlertStore.active_for(product)
            if existing is None:
                raise
            logger.warning(
                "Alerta activa duplicada evitada por restricción: product=%s alert=%s",
                product.pk,
                existing.pk,
            )
            return existing, False
        return alert, True

    @staticmethod
    def get(alert_id, *, for_update=False) -> StockAlert:
        queryset = StockAlert.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=alert_id)
        except (StockAlert.DoesNotExist, DjangoValidationError, ValueError):
            raise ResourceNotFoundError("Alerta no encontrada.", extra={"alert_id": str(alert_id)})

    @staticmethod
    def resolve(alert: StockAlert) -> StockAlert:
        """Marca la alerta como resuelta. Resolver dos veces no cambia nada."""
        if not alert.is_active:
            return alert
        alert.status = StockAlert.Status.RESOLVED
        alert.resolved_at = timezone.now()
        alert.save(update_fields=['status', 'resolved_at', 'updated_at'])
        return alert

    @staticmethod
    def delete(alert: StockAlert) -> None:
        alert.delete()

    @staticmethod
    def delete_for_product(product: Product) -> int:
        deleted, _ = StockAlert.objects.filter(product=product).delete()
        return deleted

    @staticmethod
    def list_active():
        return (
            StockAlert.objects.filter(status=StockAlert.Status.ACTIVE)
            .select_related('product')
            .order_by('-created_at')
        )

    @staticmethod
    def list_by_product(product_id):
        return (
            StockAlert.objects.filter(product_id=product_id)
            .select_related('product')
            .order_by('-created_at')
        )

    @staticmethod
    def list_all():
        return StockAlert.objects.select_related('product').order_by('-created_at')
