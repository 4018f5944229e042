import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from ..selectors import all_products, low_stock_products
from ..serializers import (
    ProductInputSerializer,
    ProductSerializer,
    StockAlertSerializer,
    StockUpdateSerializer,
    ThresholdUpdateSerializer,
)
from ..services import ProductStore, StockAlertService

logger = logging.getLogger(__name__)


def _mutation_response(result, message, status_code=status.HTTP_200_OK):
    return Response(
        {
            "success": True,
            "data": ProductSerializer(result.product).data,
            "alert": StockAlertSerializer(result.alert).data if result.alert else None,
            "message": message,
        },
        status=status_code,
    )


class ProductViewSet(viewsets.GenericViewSet):
    """
    Productos de inventario.

    Toda escritura pasa por `StockAlertService`; la vista solo valida tipos
    y da forma a la respuesta.
    """
    serializer_class = ProductSerializer

    def get_queryset(self):
        return all_products()

    def _validated(self, serializer_class):
        serializer = serializer_class(data=self.request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    def list(self, request):
        """
        GET /api/v1/products/
        """
        serializer = ProductSerializer(self.get_queryset(), many=True)
        return Response({"success": True, "data": serializer.data})

    def retrieve(self, request, pk=None):
        """
        GET /api/v1/products/{id}/
        """
        product = ProductStore.get(pk)
        return Response({"success": True, "data": ProductSerializer(product).data})

    def create(self, request):
        """
        POST /api/v1/products/
        """
        data = self._validated(ProductInputSerializer)
        result = StockAlertService.create_product(data)
        return _mutation_response(result, "Producto creado exitosamente.", status.HTTP_201_CREATED)

    def update(self, request, pk=None):
        """
        PUT /api/v1/products/{id}/

        PUT también es parcial: solo se modifican los campos enviados.
        """
        data = self._validated(ProductInputSerializer)
        result = StockAlertService.update_product(pk, data)
        return _mutation_response(result, "Producto actualizado exitosamente.")

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        """
        DELETE /api/v1/products/{id}/
        """
        deleted_alerts = StockAlertService.delete_product(pk)
        return Response(
            {
                "success": True,
                "message": "Producto eliminado exitosamente.",
                "deleted_alerts": deleted_alerts,
            }
        )

    @action(detail=False, methods=['get'], url_path='low-stock')
    def low_stock(self, request):
        """
        GET /api/v1/products/low-stock/
        """
        serializer = ProductSerializer(low_stock_products(), many=True)
        return Response({"success": True, "data": serializer.data})

    @action(detail=True, methods=['patch'], url_path='stock')
    def stock(self, request, pk=None):
        """
        PATCH /api/v1/products/{id}/stock/
        """
        data = self._validated(StockUpdateSerializer)
        result = StockAlertService.update_quantity(pk, data["quantity"])
        return _mutation_response(result, "Stock actualizado exitosamente.")

    @action(detail=True, methods=['patch'], url_path='threshold')
    def threshold(self, request, pk=None):
        """
        PATCH /api/v1/products/{id}/threshold/
        """
        data = self._validated(ThresholdUpdateSerializer)
        result = StockAlertService.update_threshold(pk, data["min_stock_level"])
        return _mutation_response(result, "Stock mínimo actualizado exitosamente.")
