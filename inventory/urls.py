from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import ProductViewSet, StockAlertViewSet

router = DefaultRouter()

# Productos: CRUD, stock, umbral y listado de stock bajo
router.register(r'products', ProductViewSet, basename='product')

# Alertas: consulta, resolución manual y limpieza
router.register(r'alerts', StockAlertViewSet, basename='stock-alert')


urlpatterns = [
    path('', include(router.urls)),
]
