from rest_framework import serializers

from ..models import StockAlert
from .catalog import ProductSummarySerializer


class StockAlertSerializer(serializers.ModelSerializer):
    """Alerta con los datos actuales de su producto."""
    product = ProductSummarySerializer(read_only=True)
    product_id = serializers.UUIDField(read_only=True)
    is_resolved = serializers.SerializerMethodField()

    class Meta:
        model = StockAlert
        fields = [
            "id",
            "product_id",
            "product",
            "status",
            "is_resolved",
            "quantity_at_trigger",
            "threshold_at_trigger",
            "created_at",
            "resolved_at",
        ]
        read_only_fields = fields

    def get_is_resolved(self, obj):
        return obj.status == StockAlert.Status.RESOLVED
