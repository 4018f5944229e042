from django.http import JsonResponse
from django.db import connections
import logging

logger = logging.getLogger(__name__)


def health_check_view(request):
    """
    Health check que verifica la base de datos.

    Retorna 200 si la base responde, 503 si no.
    """
    checks = {"db": False}
    errors = []

    try:
        with connections["default"].cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        checks["db"] = True
    except Exception as exc:
        errors.append(f"DB error: {str(exc)}")
        logger.error("Health check DB failed: %s", exc)

    if all(checks.values()):
        return JsonResponse(
            {
                "status": "ok",
                "app": "stockalerts",
                "checks": checks,
            },
            status=200
        )
    return JsonResponse(
        {
            "status": "error",
            "app": "stockalerts",
            "checks": checks,
            "errors": errors,
        },
        status=503
    )
