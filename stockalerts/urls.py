# stockalerts/urls.py
from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path

from .health import health_check_view


def api_root_view(request):
    return JsonResponse(
        {
            "success": True,
            "message": "Inventory & Stock Alert API",
            "version": "1.0.0",
            "endpoints": {
                "products": "/api/v1/products/",
                "alerts": "/api/v1/alerts/",
            },
        }
    )


api_patterns = [
    path('', include('inventory.urls')),
]

urlpatterns = [
    path('', api_root_view, name='api-root'),
    path('health/', health_check_view, name='health'),
    path('admin/', admin.site.urls),
    path('api/v1/', include(api_patterns)),
]
