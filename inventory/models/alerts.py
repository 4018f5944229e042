from django.db import models

from core.models import BaseModel

from .catalog import Product


class StockAlert(BaseModel):
    """
    Alerta de stock bajo de un producto.

    Solo `StockAlertService` crea alertas. Como máximo existe una ACTIVE por
    producto; la restricción parcial de la base de datos lo respalda.
    """
    class Status(models.TextChoices):
        ACTIVE = 'ACTIVE', 'Activa'
        RESOLVED = 'RESOLVED', 'Resuelta'

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='stock_alerts',
        verbose_name="Producto"
    )
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
        verbose_name="Estado"
    )
    quantity_at_trigger = models.PositiveIntegerField(
        verbose_name="Cantidad al abrir",
        help_text="Cantidad del producto cuando se abrió la alerta."
    )
    threshold_at_trigger = models.PositiveIntegerField(
        verbose_name="Umbral al abrir",
        help_text="Stock mínimo configurado cuando se abrió la alerta."
    )
    resolved_at = models.DateTimeField(null=True, blank=True, verbose_name="Resuelta en")

    class Meta:
        verbose_name = "Alerta de Stock"
        verbose_name_plural = "Alertas de Stock"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', '-created_at'], name='alert_status_created_idx'),
            models.Index(fields=['product', '-created_at'], name='alert_product_created_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['product'],
                condition=models.Q(status='ACTIVE'),
                name='unique_active_alert_per_product',
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(status='ACTIVE', resolved_at__isnull=True)
                    | models.Q(status='RESOLVED', resolved_at__isnull=False)
                ),
                name='stock_alert_resolved_at_matches_status',
            ),
        ]

    def __str__(self):
        return f"Alerta {self.get_status_display()} - {self.product_id}"

    @property
    def is_active(self):
        return self.status == self.Status.ACTIVE
