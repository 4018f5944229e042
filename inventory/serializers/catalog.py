from rest_framework import serializers

from ..models import MAX_STOCK_COUNTER, Product


class ProductSerializer(serializers.ModelSerializer):
    """Representación de lectura de un producto."""
    is_below_threshold = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "description",
            "category",
            "price",
            "quantity",
            "min_stock_level",
            "is_below_threshold",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProductSummarySerializer(serializers.ModelSerializer):
    """Identidad actual del producto que se adjunta a cada alerta."""

    class Meta:
        model = Product
        fields = ["id", "name", "sku", "quantity", "min_stock_level"]
        read_only_fields = fields


class ProductInputSerializer(serializers.Serializer):
    """
    Solo verifica tipos del payload. Las reglas de negocio (obligatorios,
    negativos, SKU duplicado) las aplica `StockAlertService`.
    """
    sku = serializers.CharField(required=False, allow_blank=True, max_length=60)
    name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    category = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    quantity = serializers.IntegerField(required=False, max_value=MAX_STOCK_COUNTER)
    min_stock_level = serializers.IntegerField(required=False, max_value=MAX_STOCK_COUNTER)

    def validate(self, attrs):
        unknown = set(self.initial_data) - set(self.fields)
        if unknown:
            raise serializers.ValidationError(
                {field: ["Campo no permitido."] for field in sorted(unknown)}
            )
        return attrs


class StockUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(max_value=MAX_STOCK_COUNTER)


class ThresholdUpdateSerializer(serializers.Serializer):
    min_stock_level = serializers.IntegerField(max_value=MAX_STOCK_COUNTER)
