from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from ..selectors import alerts_for_product, all_alerts, unresolved_alerts
from ..serializers import StockAlertSerializer
from ..services import StockAlertService


class StockAlertViewSet(viewsets.GenericViewSet):
    """
    Alertas de stock bajo. Los clientes nunca crean alertas: solo las
    consultan, las resuelven manualmente o las eliminan.
    """
    serializer_class = StockAlertSerializer

    def get_queryset(self):
        return all_alerts()

    def _listing(self, queryset):
        serializer = StockAlertSerializer(queryset, many=True)
        return Response({"success": True, "data": serializer.data})

    def list(self, request):
        """
        GET /api/v1/alerts/
        """
        return self._listing(self.get_queryset())

    @action(detail=False, methods=['get'])
    def unresolved(self, request):
        """
        GET /api/v1/alerts/unresolved/
        """
        return self._listing(unresolved_alerts())

    @action(detail=False, methods=['get'], url_path=r'product/(?P<product_id>[^/.]+)')
    def by_product(self, request, product_id=None):
        """
        GET /api/v1/alerts/product/{product_id}/
        """
        return self._listing(alerts_for_product(product_id))

    @action(detail=True, methods=['patch'])
    def resolve(self, request, pk=None):
        """
        PATCH /api/v1/alerts/{id}/resolve/
        """
        alert = StockAlertService.manual_resolve(pk)
        return Response(
            {
                "success": True,
                "data": StockAlertSerializer(alert).data,
                "message": "Alerta resuelta exitosamente.",
            }
        )

    def destroy(self, request, pk=None):
        """
        DELETE /api/v1/alerts/{id}/
        """
        StockAlertService.delete_alert(pk)
        return Response({"success": True, "message": "Alerta eliminada exitosamente."})
