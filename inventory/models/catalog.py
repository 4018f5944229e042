from django.db import models

from core.models import BaseModel

DEFAULT_MIN_STOCK_LEVEL = 10
# Mayor valor que admite un PositiveIntegerField en todos los motores soportados
MAX_STOCK_COUNTER = 2147483647


class Product(BaseModel):
    """
    Producto de inventario con su cantidad actual y su umbral mínimo.

    No sabe nada de alertas: la correspondencia entre cantidad y alertas
    activas la mantiene `StockAlertService`.
    """
    sku = models.CharField(
        max_length=60,
        unique=True,
        verbose_name="SKU",
        help_text="Identificador único del producto."
    )
    name = models.CharField(max_length=255, verbose_name="Nombre del Producto")
    description = models.TextField(blank=True, default="", verbose_name="Descripción")
    category = models.CharField(max_length=100, blank=True, default="", verbose_name="Categoría")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name="Precio"
    )
    quantity = models.PositiveIntegerField(default=0, verbose_name="Cantidad en Stock")
    min_stock_level = models.PositiveIntegerField(
        default=DEFAULT_MIN_STOCK_LEVEL,
        verbose_name="Stock Mínimo",
        help_text="Se abre una alerta cuando la cantidad es menor o igual a este valor."
    )

    class Meta:
        verbose_name = "Producto"
        verbose_name_plural = "Productos"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['quantity'], name='product_quantity_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=0),
                name='product_quantity_non_negative',
            ),
            models.CheckConstraint(
                condition=models.Q(min_stock_level__gte=0),
                name='product_min_stock_level_non_negative',
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    @property
    def is_below_threshold(self):
        from inventory.services.threshold import should_alert

        return should_alert(self.quantity, self.min_stock_level)
